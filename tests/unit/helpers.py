import asyncio
import os
import tempfile

import app.models.notification  # noqa: F401
import app.models.queue_failed_job  # noqa: F401
import app.models.queue_job  # noqa: F401
import app.models.user  # noqa: F401
from core.model import Model


class SQLiteDatabase:
    """Temporary SQLite file database configured on Model for one test."""

    def __init__(self):
        self._dir = tempfile.TemporaryDirectory()
        self.url = f"sqlite+aiosqlite:///{os.path.join(self._dir.name, 'test.db')}"

    def run(self, test):
        """Run an async test function against a fresh schema."""

        async def runner():
            Model.configure(self.url)
            try:
                await Model.create_tables()
                return await test()
            finally:
                await Model.cleanup()

        return asyncio.run(runner())

    def close(self):
        self._dir.cleanup()
