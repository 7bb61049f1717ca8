import os

from fastapi import Depends
from fastapi.responses import FileResponse

from recipeshare import config
from recipeshare.errors import NotFound
from recipeshare.routers.base import views_router
from recipeshare.session_guard import require_anonymous


def _page(filename: str) -> FileResponse:
    path = os.path.join(config.STATIC_DIR, filename)
    if not os.path.isfile(path):
        raise NotFound("Page not found")
    return FileResponse(path, media_type="text/html")


@views_router.get("/login.html", dependencies=[Depends(require_anonymous)], include_in_schema=False)
def login_page():
    return _page("login.html")


@views_router.get("/register.html", dependencies=[Depends(require_anonymous)], include_in_schema=False)
def register_page():
    return _page("register.html")
