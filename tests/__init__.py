import os
import sys

# Add the parent directory to the path so we can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Avoid real database, Redis and log file setup during tests
os.environ["ENABLE_MYSQL"] = "false"
os.environ["ENABLE_REDIS"] = "false"
os.environ["LOG_TO_FILE"] = "false"
