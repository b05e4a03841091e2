import json
import unittest

import httpx

from mealweek.infra.storage_backends import RemoteKVBackend
from mealweek.utilities.exceptions import RemoteStoreError


class TestRemoteKVBackend(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.requests = []
        self.store = {}

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        command, key = parts[-2], parts[-1]
        if command == "get":
            return httpx.Response(200, json={"result": self.store.get(key)})
        if command == "set":
            self.store[key] = request.content.decode("utf-8")
            return httpx.Response(200, json={"result": "OK"})
        return httpx.Response(400, json={"error": "ERR unknown command"})

    def _backend(self, handler=None):
        return RemoteKVBackend("https://kv.example.com/", "secret-token",
                               transport=httpx.MockTransport(handler or self._handler))

    async def test_set_then_get(self):
        backend = self._backend()
        payload = json.dumps([{"id": "1", "name": "Tacos", "week": 10, "year": 2025}])
        await backend.set("meals", payload)
        self.assertEqual(await backend.get("meals"), payload)

        set_request, get_request = self.requests
        self.assertEqual(set_request.method, "POST")
        self.assertEqual(set_request.url.path, "/set/meals")
        self.assertEqual(get_request.method, "GET")
        self.assertEqual(get_request.url.path, "/get/meals")
        for request in self.requests:
            self.assertEqual(request.headers["Authorization"], "Bearer secret-token")

    async def test_missing_key_is_none(self):
        self.assertIsNone(await self._backend().get("meals"))

    async def test_http_error_raises(self):
        backend = self._backend(lambda request: httpx.Response(500, json={"error": "boom"}))
        with self.assertRaises(httpx.HTTPStatusError):
            await backend.get("meals")

    async def test_error_payload_raises(self):
        backend = self._backend(lambda request: httpx.Response(200, json={"error": "WRONGPASS invalid token"}))
        with self.assertRaises(RemoteStoreError):
            await backend.set("meals", "[]")

    async def test_transport_error_propagates(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(httpx.ConnectError):
            await self._backend(unreachable).get("meals")


if __name__ == '__main__':
    unittest.main()
