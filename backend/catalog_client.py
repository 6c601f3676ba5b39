"""HTTP client for the course catalog service (quarters, majors, requirements, courses)."""

from typing import Any

import httpx


class CatalogError(RuntimeError):
    """Raised for any failed catalog request: transport, status, or body decoding."""


class CatalogClient:
    def __init__(
        self,
        base_url: str,
        timeout: float | None = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = str(base_url or "").strip().rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise CatalogError(
                f"GET {path} returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogError(f"GET {path} failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"GET {path} returned a non-JSON body") from exc

    def get_quarters(self) -> list[int]:
        payload = self._get("/api/quarters")
        if not isinstance(payload, list):
            raise CatalogError("GET /api/quarters did not return a list")
        quarters = []
        for raw in payload:
            try:
                quarters.append(int(raw))
            except (TypeError, ValueError):
                continue
        return quarters

    def get_majors(self) -> list[str]:
        payload = self._get("/api/majors")
        if not isinstance(payload, list):
            raise CatalogError("GET /api/majors did not return a list")
        return [str(m) for m in payload if m]

    def get_major_requirements(self, major: str) -> Any:
        return self._get("/api/reqs", params={"major": major})

    def get_courses_by_quarter(self, quarter: int, limit: int) -> Any:
        return self._get("/api/courses", params={"quarter": quarter, "limit": limit})

    def get_courses_by_subject(self, subject: str, limit: int) -> Any:
        return self._get("/api/courses/subject", params={"subject": subject, "limit": limit})

    def get_courses_by_key(self, key: str) -> Any:
        return self._get("/api/courses/key", params={"key": key})
