from .responses import text_response
from .utils.logger import log

HOME_TEXT = "Order SMS backend is running"


def home(method: str = "GET") -> dict:
    log("health.check", path="/", method=method)
    return text_response(200, HOME_TEXT)
