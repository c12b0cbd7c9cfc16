"""
Replay a recorded stream body through the reader, without a network.

The recording is cut into random-sized chunks to show that records split
across chunk boundaries still come out whole and in order.

Run with:
    python examples/replay_recording.py recording.jsonl
    python examples/replay_recording.py recording.jsonl --speak
"""

import argparse
import random

from stream_talk import ChunkBuffer, DecodeError, PlaybackConfig, Speaker, SpeechHandler, decode_event


def chunks_of(data: bytes, max_size: int):
    """Cut data into random-sized chunks."""
    pos = 0
    while pos < len(data):
        size = random.randint(1, max_size)
        yield data[pos:pos + size]
        pos += size


def main():
    ap = argparse.ArgumentParser(description="Replay a recorded stream body")
    ap.add_argument("path", help="File holding the raw response body")
    ap.add_argument("--max-chunk", type=int, default=64, help="Largest chunk size in bytes")
    ap.add_argument("--speak", action="store_true", help="Speak each actor name")
    args = ap.parse_args()

    with open(args.path, "rb") as f:
        data = f.read()

    speaker = Speaker(playback_config=PlaybackConfig()).initialize() if args.speak else None
    handler = SpeechHandler(speaker) if speaker else None

    buffer = ChunkBuffer()
    events = skipped = 0
    for chunk in chunks_of(data, args.max_chunk):
        for record in buffer.append(chunk):
            try:
                event = decode_event(record)
            except DecodeError as e:
                skipped += 1
                print(f"skipped: {e}")
                continue
            events += 1
            print(f"[{event.actor}]\n{event.body}")
            if handler:
                handler(event)

    print(f"\n{events} events, {skipped} skipped, {len(buffer)} bytes left over")

    if speaker:
        speaker.wait()
        speaker.shutdown()


if __name__ == "__main__":
    main()
