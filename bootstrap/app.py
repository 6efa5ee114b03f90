import logging
import logging.handlers
import os
import platform
from pathlib import Path
from typing import Optional

import psutil
from dotenv import load_dotenv

# Imported for their tables
import app.models.notification  # noqa: F401
import app.models.queue_failed_job  # noqa: F401
import app.models.queue_job  # noqa: F401
import app.models.user  # noqa: F401
from app.models.notification import DatabaseNotification
from core import __version__
from core.events.event_manager import EventManager
from core.exceptions import QueueConfigurationError
from core.mail.mailer_service import MailerService
from core.model import Model
from core.notifications.channel_registry import ChannelRegistry
from core.notifications.notifiable import bind_notifier
from core.notifications.notification_manager import NotificationManager
from core.providers.event_service_provider import CoreEventServiceProvider
from core.providers.notification_service_provider import NotificationServiceProvider
from core.providers.provider_registry import ProviderRegistry
from core.queue.queue_manager import QueueManager
from core.queue.queue_worker import QueueWorker
from core.redis_manager import RedisManager
from core.type_registry import TypeRegistry


class Application:
    @staticmethod
    def get_version():
        return __version__

    @staticmethod
    def print_banner():
        """Print the Herald ASCII art banner with system information."""
        version = Application.get_version()

        system_info = platform.system()
        cpu_count = psutil.cpu_count(logical=True)
        memory = psutil.virtual_memory()
        memory_gb = round(memory.total / (1024**3), 1)

        banner = f"""
 _   _                _     _
| | | | ___ _ __ __ _| | __| |
| |_| |/ _ \\ '__/ _` | |/ _` |
|  _  |  __/ | | (_| | | (_| |
|_| |_|\\___|_|  \\__,_|_|\\__,_| {version}

Running on {system_info} | CPU: {cpu_count} cores | RAM: {memory_gb} GB
"""
        print(banner)

    def __init__(self, env_file=".env", provider_directory="app.providers", banner=True):
        """
        Initialize a new Herald application.

        Builds the registries, the queue and the managers, and collects the
        framework providers followed by the ones discovered in
        provider_directory. Nothing is booted until boot() is called.

        Args:
            env_file: The environment file to load configuration from
            provider_directory: Package holding application providers (default: "app.providers")
            banner: Print the startup banner
        """
        if banner:
            self.print_banner()

        load_dotenv(env_file)

        self._setup_logging()

        self.mysql_enabled = os.getenv("ENABLE_MYSQL", "true").lower() == "true"
        if self.mysql_enabled:
            self._setup_database()
        else:
            self.logger.info("MySQL integration is disabled")

        self.redis_manager = RedisManager()
        self.redis_enabled = self.redis_manager.enabled

        self.types = TypeRegistry()
        self.mailer = MailerService()
        self.channels = ChannelRegistry()
        self.queue = self._make_queue()

        self.providers = [
            CoreEventServiceProvider(self),
            NotificationServiceProvider(self),
        ]
        self.providers.extend(ProviderRegistry(provider_directory).discover(self))
        for provider in self.providers:
            provider.register()

        self.events = EventManager(self.types, self.queue, self.providers)
        self.notifications = NotificationManager(self.channels, self.providers)

    def _setup_logging(self):
        """Configure logging based on environment variables with file rotation support."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        log_format = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        log_to_file = os.getenv("LOG_TO_FILE", "true").lower() == "true"
        log_file = os.getenv("LOG_FILE", "logs/app.log")

        log_rotation_type = os.getenv("LOG_ROTATION_TYPE", "size").lower()  # 'size' or 'time'

        max_bytes = int(os.getenv("LOG_MAX_BYTES", "10485760"))  # 10 MB default
        backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5"))

        rotation_when = os.getenv("LOG_ROTATION_WHEN", "midnight").lower()  # 'midnight', 'D', 'H', etc.
        rotation_interval = int(os.getenv("LOG_ROTATION_INTERVAL", "1"))

        date_format = os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d")

        handlers = [logging.StreamHandler()]

        if log_to_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            try:
                if log_rotation_type == "time":
                    file_handler = logging.handlers.TimedRotatingFileHandler(
                        filename=log_file,
                        when=rotation_when,
                        interval=rotation_interval,
                        backupCount=backup_count,
                        encoding='utf-8'
                    )
                    file_handler.suffix = date_format
                else:
                    file_handler = logging.handlers.RotatingFileHandler(
                        filename=log_file,
                        maxBytes=max_bytes,
                        backupCount=backup_count,
                        encoding='utf-8'
                    )

                file_handler.setFormatter(logging.Formatter(log_format))
                handlers.append(file_handler)

            except Exception as e:
                print(f"Warning: Could not setup file logging: {e}")
                print("Falling back to console logging only")

        logging.basicConfig(
            level=getattr(logging, log_level),
            format=log_format,
            handlers=handlers,
            force=True
        )

        self.logger = logging.getLogger("Herald.Application")

        if log_to_file:
            self.logger.info(f"Logging configured - File: {log_file}, Rotation: {log_rotation_type}")
            if log_rotation_type == "size":
                self.logger.info(f"Size rotation - Max: {max_bytes} bytes, Backups: {backup_count}")
            else:
                self.logger.info(f"Time rotation - When: {rotation_when}, Interval: {rotation_interval}, Backups: {backup_count}")
        else:
            self.logger.info("File logging disabled - Console only")

    def _setup_database(self):
        """Configure database connection. DATABASE_URL wins over the DB_* settings."""
        conn_str = os.getenv("DATABASE_URL")
        if not conn_str:
            db_host = os.getenv("DB_HOST", "localhost")
            db_port = os.getenv("DB_PORT", "3306")
            db_name = os.getenv("DB_NAME", "herald")
            db_user = os.getenv("DB_USER", "root")
            db_pass = os.getenv("DB_PASS", "")
            conn_str = f"mysql+aiomysql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"
        Model.configure(conn_str)

    def _make_queue(self, connection: Optional[str] = None) -> Optional[QueueManager]:
        """
        Queue for the configured connection, or None when its backend is
        disabled. Queued listeners then fail at dispatch.
        """
        try:
            return QueueManager(connection, self.redis_manager)
        except QueueConfigurationError as e:
            self.logger.warning(f"Queue unavailable: {e}")
            return None

    def boot(self) -> "Application":
        """Register listeners and notification channels. Safe to call more than once."""
        self.events.boot()
        self.notifications.boot()
        return self

    async def dispatch(self, event) -> None:
        """Dispatch an event with this application's notifier bound."""
        with bind_notifier(self.notifications):
            await self.events.dispatch(event)

    async def initialize_database(self):
        """Create database tables."""
        if self.mysql_enabled:
            await Model.create_tables()

    async def initialize_redis(self):
        """Initialize Redis connection."""
        if self.redis_enabled:
            success = await self.redis_manager.initialize()
            if success:
                self.logger.info("Redis initialized successfully")
            else:
                self.logger.warning("Redis initialization failed")

    async def _initialize_connections(self):
        """Initialize database and Redis connections."""
        await self.initialize_database()
        await self.initialize_redis()

    async def _cleanup_connections(self):
        """Cleanup database and Redis connections."""
        if self.redis_enabled:
            await self.redis_manager.disconnect()
        if self.mysql_enabled:
            await Model.cleanup()

    async def work(
        self,
        queue: str = "default",
        connection: Optional[str] = None,
        max_jobs: Optional[int] = None,
        max_time: Optional[int] = None,
        once: bool = False,
        sleep: float = 3,
        timeout: int = 60,
    ) -> int:
        """
        Run a queue worker until it stops.

        Raises:
            QueueConfigurationError: If the requested connection is not usable

        Returns:
            Number of jobs processed
        """
        self.boot()
        queue_manager = QueueManager(connection, self.redis_manager) if connection else self.queue
        if queue_manager is None:
            queue_manager = QueueManager(None, self.redis_manager)

        await self._initialize_connections()
        try:
            worker = QueueWorker(
                queue_manager,
                self.types,
                queue_name=queue,
                max_jobs=max_jobs,
                max_time=max_time,
                once=once,
                sleep=sleep,
                timeout=timeout,
            )
            worker.install_signal_handlers()
            with bind_notifier(self.notifications):
                await worker.work()
            return worker.jobs_processed
        finally:
            await self._cleanup_connections()

    async def prune_notifications(self, days: int = 90) -> int:
        """Delete stored notifications older than the given number of days."""
        if not self.mysql_enabled:
            self.logger.warning("Cannot prune notifications - the database is disabled")
            return 0
        try:
            deleted = await DatabaseNotification.prune(days)
            self.logger.info(f"Pruned {deleted} notifications older than {days} days")
            return deleted
        finally:
            await Model.cleanup()
