"""HTTP clients for the web-platform-tests repository."""

import logging
import os
from collections.abc import Iterator
from typing import Any

import requests
from dotenv import load_dotenv

from ..errors import FetchError, SyncTimeoutError
from .deadline import METADATA_TIMEOUT, Deadline

logger = logging.getLogger(__name__)

DEFAULT_RAW_URL = "https://raw.githubusercontent.com/web-platform-tests/wpt"
DEFAULT_API_URL = "https://api.github.com"
WPT_REPO = "web-platform-tests/wpt"

CHUNK_SIZE = 64 * 1024


class RawContentClient:
    """Downloads raw file contents at a pinned commit."""

    def __init__(
        self,
        raw_url: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            raw_url: Raw content base URL (or load from WPTSYNC_RAW_URL env)
            session: requests session (created if not provided)
        """
        load_dotenv()

        self.raw_url = (raw_url or os.getenv("WPTSYNC_RAW_URL") or DEFAULT_RAW_URL).rstrip("/")
        self.session = session or requests.Session()

    def build_url(self, commit: str, src: str) -> str:
        """Build the raw content URL for a file at a commit."""
        return f"{self.raw_url}/{commit}/{src.lstrip('/')}"

    def fetch(self, commit: str, src: str, deadline: Deadline) -> "BodyStream":
        """Start downloading a file.

        The request is issued immediately so status errors surface here;
        the body is streamed by the returned iterator.

        Args:
            commit: Pinned WPT commit
            src: Path within the repository
            deadline: Budget for the whole run

        Returns:
            Closable iterator over the body bytes

        Raises:
            FetchError: On transport errors or a non-200 status
            SyncTimeoutError: If the budget runs out
        """
        url = self.build_url(commit, src)
        timeout = deadline.check("download")
        logger.debug("GET %s (timeout %.1fs)", url, timeout)

        try:
            response = self.session.get(url, stream=True, timeout=timeout)
        except requests.Timeout as e:
            raise SyncTimeoutError(f"request timed out: {e}") from e
        except requests.RequestException as e:
            raise FetchError(f"request failed: {e}") from e

        if response.status_code != 200:
            response.close()
            raise FetchError(
                f"unexpected status {response.status_code} {response.reason or ''}".rstrip(),
                response.status_code,
            )

        return BodyStream(response, deadline)


class BodyStream:
    """Response body that owns its connection.

    Iterating to the end (or failing) closes the response; callers that
    never iterate must call close().
    """

    def __init__(self, response: requests.Response, deadline: Deadline) -> None:
        self.response = response
        self.deadline = deadline

    def __iter__(self) -> Iterator[bytes]:
        """Yield the body, enforcing the deadline between chunks."""
        try:
            for chunk in self.response.iter_content(chunk_size=CHUNK_SIZE):
                self.deadline.check("download")
                if chunk:
                    yield chunk
        except requests.Timeout as e:
            raise SyncTimeoutError(f"read timed out: {e}") from e
        except requests.RequestException as e:
            raise FetchError(f"read response: {e}") from e
        finally:
            self.close()

    def close(self) -> None:
        self.response.close()


class GitHubClient:
    """Minimal GitHub REST client for commit lookup and directory listings."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        repo: str = WPT_REPO,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_url: GitHub API base URL (or load from WPTSYNC_API_URL env)
            token: Optional API token (or load from GITHUB_TOKEN env)
            repo: Repository in owner/name form
            session: requests session (created if not provided)
        """
        load_dotenv()

        self.api_url = (api_url or os.getenv("WPTSYNC_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.token = token or os.getenv("GITHUB_TOKEN", "")
        self.repo = repo
        self.session = session or requests.Session()

    def get_headers(self) -> dict[str, str]:
        """Headers sent with every API request."""
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_json(
        self,
        path: str,
        deadline: Deadline,
        query_params: dict[str, str] | None = None,
    ) -> Any:
        """Make a GET request and decode the JSON body.

        Raises:
            FetchError: On API errors
        """
        url = f"{self.api_url}{path}"
        timeout = deadline.check("GitHub API request")
        logger.debug("GET %s %s", url, query_params or "")

        try:
            response = self.session.get(
                url,
                params=query_params,
                headers=self.get_headers(),
                timeout=timeout,
            )
        except requests.Timeout as e:
            raise SyncTimeoutError(f"request timed out: {e}") from e
        except requests.RequestException as e:
            raise FetchError(f"request failed: {e}") from e

        if response.status_code == 404:
            raise FetchError(f"{path} not found", 404)
        if response.status_code != 200:
            raise FetchError(
                f"GitHub API returned {response.status_code} {response.reason or ''}".rstrip(),
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"decode response: {e}") from e

    def latest_commit(self, branch: str = "master", deadline: Deadline | None = None) -> str:
        """Get the SHA of the newest commit on a branch.

        Raises:
            FetchError: On API errors or an empty SHA
        """
        deadline = deadline or Deadline(METADATA_TIMEOUT)
        data = self._get_json(f"/repos/{self.repo}/commits/{branch}", deadline)

        sha = data.get("sha", "") if isinstance(data, dict) else ""
        if not sha:
            raise FetchError("empty commit SHA in response")
        return sha

    def list_files(
        self,
        commit: str,
        path: str,
        suffix: str = ".js",
        deadline: Deadline | None = None,
    ) -> list[str]:
        """List files under a repository path, recursing into directories.

        Args:
            commit: Commit to list at
            path: File or directory path within the repository
            suffix: Only files ending with this suffix are returned
            deadline: Budget for all listing requests

        Returns:
            Repository paths in listing order

        Raises:
            FetchError: If the path does not exist or the API fails
        """
        deadline = deadline or Deadline(METADATA_TIMEOUT)
        files: list[str] = []
        self._collect_files(commit, path.strip("/"), suffix, deadline, files)
        return files

    def _collect_files(
        self,
        commit: str,
        path: str,
        suffix: str,
        deadline: Deadline,
        files: list[str],
    ) -> None:
        """Recursively collect files from a contents listing."""
        try:
            data = self._get_json(
                f"/repos/{self.repo}/contents/{path}",
                deadline,
                query_params={"ref": commit},
            )
        except FetchError as e:
            if e.status_code == 404:
                raise FetchError(f"path {path!r} not found in repository", 404) from e
            raise

        # A single file comes back as an object, a directory as an array
        if isinstance(data, dict):
            if data.get("type") == "file" and data.get("path", "").endswith(suffix):
                files.append(data["path"])
            return

        if not isinstance(data, list):
            raise FetchError(f"unexpected listing for {path!r}")

        for item in data:
            item_type = item.get("type", "")
            item_path = item.get("path", "")

            if item_type == "file":
                if item_path.endswith(suffix):
                    files.append(item_path)
            elif item_type == "dir":
                self._collect_files(commit, item_path, suffix, deadline, files)
