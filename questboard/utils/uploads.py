"""
UploadThing file storage: deletion and orphan cleanup.

Uploads themselves happen client-side; this module only removes files.
Storage errors never abort the calling operation: they are logged and the
job moves on to the next batch.
"""
import logging
import re
from typing import Iterable, Optional

import requests
from flask import current_app

from questboard.extensions import db

log = logging.getLogger(__name__)

_API = "https://api.uploadthing.com/v6"
_SESSION = requests.Session()
_KEY_RE = re.compile(r"/f/([^/?]+)")
_HOSTS = ("ufs.sh", "utfs.io")

DELETE_BATCH = 10
LIST_PAGE = 500


class UploadError(Exception):
    """Raised when the storage provider rejects a request or is unreachable."""
    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


def extract_file_key(url: str) -> Optional[str]:
    """``https://x.ufs.sh/f/<key>?v=1`` → ``<key>``; None when the URL has no key."""
    if not url:
        return None
    match = _KEY_RE.search(url)
    return match.group(1) if match else None


def _token() -> str:
    return current_app.config.get("UPLOADTHING_TOKEN", "")


def _post(path: str, payload: dict) -> dict:
    try:
        resp = _SESSION.post(
            f"{_API}/{path}",
            json=payload,
            headers={"X-Uploadthing-Api-Key": _token()},
            timeout=10,
        )
    except requests.RequestException as exc:
        raise UploadError(f"Network error contacting UploadThing: {exc}") from exc
    if not resp.ok:
        raise UploadError(f"UploadThing {path} returned {resp.status_code}", status_code=resp.status_code)
    return resp.json() if resp.content else {}


def delete_keys(keys: list) -> int:
    """Delete files by key in batches. Returns how many keys were accepted."""
    deleted = 0
    for i in range(0, len(keys), DELETE_BATCH):
        batch = keys[i:i + DELETE_BATCH]
        try:
            _post("deleteFiles", {"fileKeys": batch})
            deleted += len(batch)
        except UploadError as exc:
            log.error("Failed to delete %d files: %s", len(batch), exc)
    return deleted


def delete_files(urls: Iterable[str]) -> int:
    """Delete the stored files behind ``urls``; foreign URLs are ignored."""
    if not _token():
        return 0
    keys = [
        key for key in (
            extract_file_key(u) for u in urls if u and any(h in u for h in _HOSTS)
        ) if key
    ]
    if not keys:
        return 0
    return delete_keys(keys)


def list_remote_keys() -> list:
    keys = []
    offset = 0
    while True:
        data = _post("listFiles", {"limit": LIST_PAGE, "offset": offset})
        files = data.get("files") or []
        keys.extend(f["key"] for f in files if f.get("key"))
        if len(files) < LIST_PAGE:
            return keys
        offset += LIST_PAGE


def referenced_urls() -> set:
    """Every stored-file URL the database still points at."""
    from questboard.models import Article, PostImage, Review, User

    urls = set()
    for avatar, banner in db.session.query(User.avatar_url, User.banner_url):
        urls.update(u for u in (avatar, banner) if u)
    urls.update(u for (u,) in db.session.query(PostImage.url) if u)
    urls.update(u for (u,) in db.session.query(Article.cover_image_url) if u)
    urls.update(u for (u,) in db.session.query(Review.cover_image_url) if u)
    return urls


def cleanup_orphaned_uploads() -> dict:
    """Delete remote files no database row references."""
    if not _token():
        log.error("UPLOADTHING_TOKEN not set, skipping cleanup")
        return {"remote": 0, "orphaned": 0, "deleted": 0}

    in_use = {k for k in (extract_file_key(u) for u in referenced_urls()) if k}
    try:
        remote = list_remote_keys()
    except UploadError as exc:
        log.error("Failed to list UploadThing files: %s", exc)
        return {"remote": 0, "orphaned": 0, "deleted": 0}

    log.info("Found %d total files on UploadThing", len(remote))
    orphaned = [k for k in remote if k not in in_use]
    deleted = delete_keys(orphaned) if orphaned else 0
    log.info("Deleted %d of %d orphaned files", deleted, len(orphaned))
    return {"remote": len(remote), "orphaned": len(orphaned), "deleted": deleted}
