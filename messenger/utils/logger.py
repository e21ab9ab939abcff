import logging
import os

def setup_logger(name='messenger'):
    """Set up a logger with console and file output.

    Creates a logger that writes:
    - INFO and above to console
    - DEBUG and above to file (logs/messenger.log)

    The log directory can be moved with MESSENGER_LOG_DIR, and the file
    handler turned off entirely with MESSENGER_LOG_FILE=0.

    Args:
        name (str, optional): Logger name. Defaults to 'messenger'

    Returns:
        logging.Logger: Configured logger instance

    Side Effects:
        - Creates logs directory if it doesn't exist
        - Creates/appends to messenger.log file
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)

    # Create formatters and handlers
    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(name)s - %(message)s')

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)

    if os.environ.get('MESSENGER_LOG_FILE', '1') == '0':
        return logger

    # File handler - ensure log directory exists
    log_dir = os.environ.get('MESSENGER_LOG_DIR') or \
        os.path.join(os.path.dirname(os.path.dirname(__file__)), 'logs')
    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(os.path.join(log_dir, 'messenger.log'), encoding='utf-8')
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)

    return logger
