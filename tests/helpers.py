from unittest.mock import Mock

import requests


def make_response(text: str = "", status_code: int = 200) -> Mock:
    """Build a stand-in for requests.Response."""
    response = Mock()
    response.text = text
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Server Error"
        )
    return response


def jsonp(payload: str, callback: str = "dr1003") -> str:
    return f"{callback}({payload});"
