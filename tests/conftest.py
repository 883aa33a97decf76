import os

# Keep test output free of the project's colored log lines
os.environ.setdefault("LOG_LEVEL", "ERROR")
