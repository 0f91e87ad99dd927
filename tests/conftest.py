import os

# Console-only WARNING logging, no log files written during tests
os.environ.setdefault("ENVIRONMENT", "testing")
