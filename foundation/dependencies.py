from typing import Iterator

from fastapi import Request

from foundation.core.app import App


def get_app(request: Request) -> Iterator[App]:
    """
    Dependency for the per-request application coordinator
    """
    app = App(request=request)
    request.state.app = app
    try:
        yield app
    finally:
        app.close()
