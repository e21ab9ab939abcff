import os

# Keep test runs from writing messenger/logs/messenger.log
os.environ.setdefault("MESSENGER_LOG_FILE", "0")
