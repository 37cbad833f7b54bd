import time
from urllib.parse import quote

import requests

class RolloutClient:
    def __init__(self, api_url: str, timeout: float = 2.0, cache_ttl: float = 30.0):
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._cache = {}  # (feature, user, group) -> (active, ts)

    def _request(self, method: str, path: str, params=None, json=None):
        url = f"{self.api_url}{path}"
        r = requests.request(method, url, params=params, json=json, timeout=self.timeout)
        r.raise_for_status()
        return r.json() if r.content else None

    def _path(self, feature: str, action: str) -> str:
        return f"/features/{quote(feature, safe='')}/{action}"

    def _evict_expired(self, now: float):
        for key in [k for k, v in self._cache.items() if now - v[1] >= self.cache_ttl]:
            del self._cache[key]

    def _forget(self, feature: str):
        for key in [k for k in self._cache if k[0] == feature]:
            del self._cache[key]

    def is_active(self, feature: str, user: str | None = None, group: str | None = None) -> bool:
        now = time.time()
        key = (feature, user, group)
        cached = self._cache.get(key)
        if cached and (now - cached[1] < self.cache_ttl):
            return cached[0]
        params = {}
        if user:
            params["user"] = user
        if group:
            params["group"] = group
        data = self._request("GET", self._path(feature, "active"), params=params)
        self._evict_expired(now)
        self._cache[key] = (data["active"], now)
        return data["active"]

    def set_percentage(self, feature: str, percentage: float):
        self._request("PUT", self._path(feature, "percentage"), json={"percentage": percentage})
        self._forget(feature)

    def set_groups(self, feature: str, groups: list[str]):
        self._request("POST", self._path(feature, "groups"), json={"items": groups})
        self._forget(feature)

    def remove_groups(self, feature: str, groups: list[str]):
        self._request("DELETE", self._path(feature, "groups"), json={"items": groups})
        self._forget(feature)

    def set_users(self, feature: str, users: list[str]):
        self._request("POST", self._path(feature, "users"), json={"items": users})
        self._forget(feature)

    def remove_users(self, feature: str, users: list[str]):
        self._request("DELETE", self._path(feature, "users"), json={"items": users})
        self._forget(feature)
