"""
Count posts per user from a live stream with a handler of your own.

Any callable taking a DecodedEvent works as a handler. Stop after a fixed
number of events by calling stop() from inside the handler.

Run with:
    STREAM_TALK_TOKEN=... python examples/custom_handler.py python
"""

import asyncio
import logging
import os
import sys
from collections import Counter

from stream_talk import ConnectionConfig, Credentials, DecodedEvent, StreamConnection, TransportError


class PostCounter:
    """Counts posts per actor and closes the stream after `limit` posts."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.counts: Counter[str] = Counter()
        self.connection: StreamConnection | None = None

    def __call__(self, event: DecodedEvent) -> None:
        self.counts[event.actor] += 1
        print(f"{sum(self.counts.values()):4d} [{event.actor}] {event.body[:60]}")
        if sum(self.counts.values()) >= self.limit and self.connection is not None:
            self.connection.stop()


async def main(track: str) -> int:
    counter = PostCounter(limit=50)
    config = ConnectionConfig(
        params={"track": track},
        credentials=Credentials(token=os.environ["STREAM_TALK_TOKEN"]),
    )

    async with StreamConnection(counter) as conn:
        counter.connection = conn
        try:
            await conn.start(config)
        except TransportError as e:
            print(f"Stream failed: {e} (status={e.status_code})")
            return 1

    print("\nMost active:")
    for actor, count in counter.counts.most_common(5):
        print(f"  {count:3d}  {actor}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "python")))
