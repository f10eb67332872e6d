"""Storage driver for the ghcr.io package registry."""

from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import SecretStr
from safir.datetime import parse_isodatetime

from ..config import RegistryConfig
from ..exceptions import AuthError, NotFound, RegistryUnavailable
from ..models.version import PackageRef, VersionRecord
from .registry import RegistryClient

__all__ = ["GhcrClient"]


class GhcrClient(RegistryClient):
    """Storage client for communication with the GitHub Packages API.

    Parameters
    ----------
    cfg
        Registry configuration.
    http_client
        HTTP client to use.  If not given, one is created; this is mostly
        there for the test suite.
    """

    def __init__(
        self, cfg: RegistryConfig, http_client: httpx.Client | None = None
    ) -> None:
        self._url = str(cfg.url).rstrip("/")
        self._page_size = cfg.page_size
        self._http_client = http_client or httpx.Client(timeout=cfg.timeout)
        self._http_client.headers.update(
            {
                "accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        self._logger = structlog.get_logger(__name__)
        if cfg.token:
            self.authenticate(cfg.token)

    def authenticate(self, token: SecretStr) -> None:
        self._http_client.headers["authorization"] = (
            f"Bearer {token.get_secret_value()}"
        )

    def close(self) -> None:
        self._http_client.close()

    def list_packages(self, organization: str) -> list[PackageRef]:
        url = f"{self._url}/orgs/{organization}/packages"
        what = f"{organization} packages"
        results = self._get_all_pages(
            url, what, {"package_type": "container"}
        )
        packages: dict[str, PackageRef] = {}
        try:
            for res in results:
                name = res["name"]
                if name in packages:
                    # The listing shifted between pages.
                    continue
                packages[name] = PackageRef(
                    name=name, organization=organization, id=res.get("id")
                )
        except (AttributeError, KeyError, TypeError) as e:
            raise RegistryUnavailable(
                f"Malformed entry listing {what}: {e!r}"
            ) from e
        self._logger.debug(
            f"Found {len(packages)} packages in {organization}"
        )
        return list(packages.values())

    def list_versions(self, package: PackageRef) -> list[VersionRecord]:
        what = f"{package} versions"
        results = self._get_all_pages(self._versions_url(package), what)
        versions: list[VersionRecord] = []
        try:
            for res in results:
                metadata = res.get("metadata") or {}
                tags = (metadata.get("container") or {}).get("tags") or []
                versions.append(
                    VersionRecord(
                        id=res["id"],
                        package_name=package.name,
                        created_at=parse_isodatetime(res["created_at"]),
                        tags=frozenset(tags),
                        digest=res.get("name", ""),
                    )
                )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # Missing fields, or a timestamp safir cannot parse
            raise RegistryUnavailable(
                f"Malformed entry listing {what}: {e!r}"
            ) from e
        self._logger.debug(f"Found {len(versions)} versions of {package}")
        return versions

    def delete_version(self, package: PackageRef, version_id: int) -> None:
        url = f"{self._versions_url(package)}/{version_id}"
        self._request("DELETE", url, f"{package} version {version_id}")

    def _versions_url(self, package: PackageRef) -> str:
        # Package names may contain slashes, which must be escaped.
        name = quote(package.name, safe="")
        return (
            f"{self._url}/orgs/{package.organization}/packages"
            f"/container/{name}/versions"
        )

    def _get_all_pages(
        self, url: str, what: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        params = dict(params or {})
        params["per_page"] = self._page_size
        page = 1
        results: list[dict[str, Any]] = []
        while True:
            self._logger.debug(
                f"Requesting {what}: items "
                f"{(page - 1) * self._page_size + 1}-"
                f"{page * self._page_size}"
            )
            params["page"] = page
            r = self._request("GET", url, what, params=params)
            try:
                items = r.json()
            except ValueError as e:
                raise RegistryUnavailable(
                    f"Response listing {what} is not JSON: {e}"
                ) from e
            if not isinstance(items, list):
                raise RegistryUnavailable(
                    f"Unexpected response listing {what}: {items!r}"
                )
            if len(items) == 0:
                break
            results.extend(items)
            if len(items) < self._page_size:
                break
            page += 1
        return results

    def _request(
        self,
        method: str,
        url: str,
        what: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make a request, translating failures to registry exceptions."""
        try:
            r = self._http_client.request(method, url, params=params)
        except httpx.TimeoutException as e:
            raise RegistryUnavailable(f"Timed out on {what}: {e}") from e
        except httpx.HTTPError as e:
            raise RegistryUnavailable(
                f"Cannot reach registry for {what}: {e}"
            ) from e
        if r.status_code in (401, 403):
            raise AuthError(f"Not authorized for {what}: {r.status_code}")
        if r.status_code == 404:
            raise NotFound(f"{what} not found")
        if r.is_error:
            raise RegistryUnavailable(
                f"Registry returned {r.status_code} for {what}"
            )
        return r
