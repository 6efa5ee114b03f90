#!/usr/bin/env python3
"""
Herald - events, queued listeners and multi-channel notifications
"""
import argparse
import asyncio
import os
import sys

from bootstrap.app import Application


def create_app(env_file=".env"):
    """Create, boot and return a new application instance."""
    return Application(env_file=env_file).boot()

def create_env_file():
    """Create a default .env file if it doesn't exist."""
    if not os.path.exists(".env"):
        with open(".env", "w") as f:
            f.write("""# Application
APP_NAME=Herald

# Database Configuration
ENABLE_MYSQL=false
DB_HOST=localhost
DB_PORT=3306
DB_NAME=herald
DB_USER=root
DB_PASS=
# DATABASE_URL=sqlite+aiosqlite:///herald.db

# Redis Configuration
ENABLE_REDIS=false
REDIS_HOST=localhost
REDIS_PORT=6379
REDIS_DB=0

# Queue Configuration
QUEUE_CONNECTION=database
QUEUE_MAX_ATTEMPTS=3
QUEUE_RETRY_AFTER=0
QUEUE_BLOCK_TIMEOUT=5

# Mail Configuration
MAIL_HOST=localhost
MAIL_PORT=587
MAIL_USERNAME=
MAIL_PASSWORD=
MAIL_USE_TLS=true
MAIL_FROM_ADDRESS=no-reply@localhost

# Logging Configuration
LOG_LEVEL=INFO
LOG_FORMAT=%(asctime)s - %(name)s - %(levelname)s - %(message)s
""")
        print("Created default .env file")

def queue_work(queue="default", connection=None, max_jobs=None, max_time=None,
               once=False, sleep=3, timeout=60):
    """Start the queue worker to process background jobs."""
    create_env_file()
    app = create_app()

    print(f"Starting queue worker for queue: {queue}")
    print(f"Connection: {connection or 'default'}")
    print(f"Sleep when idle: {sleep}s")
    print(f"Press Ctrl+C to stop gracefully\n")

    asyncio.run(app.work(
        queue=queue,
        connection=connection,
        max_jobs=max_jobs,
        max_time=max_time,
        once=once,
        sleep=sleep,
        timeout=timeout,
    ))

def prune_notifications(days=90):
    """Delete stored notifications older than the given number of days."""
    app = create_app()
    deleted = asyncio.run(app.prune_notifications(days))
    print(f"Pruned {deleted} notifications older than {days} days")

def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Herald - events, queues and notifications")
    parser.add_argument('--init', action='store_true', help="Create a default .env file")
    parser.add_argument('--queue-work', action='store_true', help="Start queue worker to process background jobs")
    parser.add_argument('--queue', type=str, default="default", help="The queue to process (default: default)")
    parser.add_argument('--connection', type=str, help="Queue connection to use (redis or database)")
    parser.add_argument('--max-jobs', type=int, help="Maximum number of jobs to process")
    parser.add_argument('--max-time', type=int, help="Maximum time in seconds to run")
    parser.add_argument('--once', action='store_true', help="Process a single job and exit")
    parser.add_argument('--sleep', type=int, default=3, help="Seconds to sleep when no job is available (default: 3)")
    parser.add_argument('--timeout', type=int, default=60, help="Maximum seconds a job can run (default: 60)")
    parser.add_argument('--notifications-prune', action='store_true', help="Delete old stored notifications")
    parser.add_argument('--days', type=int, default=90, help="Retention in days for --notifications-prune (default: 90)")

    args = parser.parse_args()

    if args.init:
        create_env_file()
        print("Herald project initialized successfully!")
        return

    if args.queue_work:
        queue_work(
            queue=args.queue,
            connection=args.connection,
            max_jobs=args.max_jobs,
            max_time=args.max_time,
            once=args.once,
            sleep=args.sleep,
            timeout=args.timeout,
        )
        return

    if args.notifications_prune:
        prune_notifications(args.days)
        return

    parser.print_help()
    return 1

if __name__ == "__main__":
    sys.exit(main())
