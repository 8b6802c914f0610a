import unittest

from fastapi.testclient import TestClient

from app import create_app
from backend import InMemoryBackend
from tests.helpers import FakeClock


class ChatApiTests(unittest.TestCase):
    def setUp(self):
        self.backend = InMemoryBackend()
        self.clock = FakeClock()
        self.app = create_app(backend=self.backend, clock=self.clock)
        self.client = TestClient(self.app)

    def join(self, name):
        return self.client.post("/participants", json={"name": name})

    def post(self, user, to="Todos", text="hi", message_type="message"):
        return self.client.post(
            "/messages",
            json={"to": to, "text": text, "type": message_type},
            headers={"User": user},
        )

    def test_join_and_list_participants(self):
        response = self.join("bob")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["name"], "bob")

        response = self.client.get("/participants")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [{"name": "bob", "lastStatus": int(self.clock.now * 1000)}])

    def test_join_conflict_and_invalid(self):
        self.join("bob")
        self.assertEqual(self.join("bob").status_code, 409)
        self.assertEqual(self.join("").status_code, 422)
        self.assertEqual(self.client.post("/participants", json={}).status_code, 422)

    def test_post_then_list_as_bystander(self):
        self.join("bob")
        response = self.post("bob")
        self.assertEqual(response.status_code, 201)
        created = response.json()
        self.assertEqual(created["from"], "bob")

        response = self.client.get("/messages", headers={"User": "carol"})
        self.assertEqual(response.status_code, 200)
        messages = response.json()
        self.assertEqual([m["type"] for m in messages], ["status", "message"])
        self.assertEqual(messages[1], created)
        self.assertEqual(set(messages[0]), {"from", "to", "text", "type", "time", "id"})

    def test_post_rejections(self):
        self.join("bob")
        self.assertEqual(self.post("mallory").status_code, 422)
        self.assertEqual(self.post("bob", message_type="status").status_code, 422)
        self.assertEqual(self.post("bob", text="").status_code, 422)
        response = self.client.post("/messages", json={"to": "Todos", "text": "hi", "type": "message"})
        self.assertEqual(response.status_code, 422)

    def test_private_message_visibility(self):
        for name in ("alice", "bob", "carol"):
            self.join(name)
        self.post("alice", to="bob", text="secret", message_type="private_message")

        def texts(viewer):
            response = self.client.get("/messages", headers={"User": viewer})
            return [m["text"] for m in response.json() if m["type"] != "status"]

        self.assertEqual(texts("alice"), ["secret"])
        self.assertEqual(texts("bob"), ["secret"])
        self.assertEqual(texts("carol"), [])

    def test_list_messages_limit(self):
        self.join("bob")
        for text in ("one", "two", "three"):
            self.post("bob", text=text)
        response = self.client.get("/messages", params={"limit": 2}, headers={"User": "bob"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m["text"] for m in response.json()], ["two", "three"])

        for limit in ("0", "-2", "abc"):
            response = self.client.get("/messages", params={"limit": limit}, headers={"User": "bob"})
            self.assertEqual(response.status_code, 422)
        self.assertEqual(self.client.get("/messages").status_code, 422)

    def test_heartbeat(self):
        self.join("bob")
        self.clock.advance(4)
        response = self.client.post("/status", headers={"User": "bob"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.backend.get_participant("bob")["lastStatus"], int(self.clock.now * 1000))

        self.assertEqual(self.client.post("/status", headers={"User": "ghost"}).status_code, 404)
        self.assertEqual(self.client.post("/status").status_code, 404)

    def test_edit_message(self):
        self.join("alice")
        self.join("bob")
        message_id = self.post("alice").json()["id"]

        response = self.client.put(
            f"/messages/{message_id}",
            json={"to": "Todos", "text": "edited", "type": "message"},
            headers={"User": "bob"},
        )
        self.assertEqual(response.status_code, 401)

        response = self.client.put(
            f"/messages/{message_id}",
            json={"to": "Todos", "text": "edited", "type": "message"},
            headers={"User": "alice"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["text"], "edited")
        self.assertEqual(response.json()["from"], "alice")

        response = self.client.put(
            "/messages/missing",
            json={"to": "Todos", "text": "edited", "type": "message"},
            headers={"User": "alice"},
        )
        self.assertEqual(response.status_code, 404)

    def test_delete_message(self):
        self.join("alice")
        self.join("bob")
        message_id = self.post("alice").json()["id"]

        self.assertEqual(self.client.delete(f"/messages/{message_id}", headers={"User": "bob"}).status_code, 401)
        self.assertEqual(self.client.delete(f"/messages/{message_id}").status_code, 422)
        self.assertEqual(self.client.delete(f"/messages/{message_id}", headers={"User": "alice"}).status_code, 200)
        self.assertEqual(self.client.delete(f"/messages/{message_id}", headers={"User": "alice"}).status_code, 404)

    def test_inactive_participant_is_swept(self):
        self.join("bob")
        self.clock.advance(11)
        self.app.state.reaper.sweep()

        self.assertEqual(self.client.get("/participants").json(), [])
        messages = self.client.get("/messages", headers={"User": "carol"}).json()
        self.assertEqual([m["text"] for m in messages], ["entra na sala...", "sai da sala..."])
        self.assertEqual(self.post("bob").status_code, 422)

    def test_lifespan_opens_store_and_runs_requests(self):
        with TestClient(self.app) as client:
            self.assertEqual(client.post("/participants", json={"name": "dave"}).status_code, 201)
            self.assertIsNotNone(self.app.state.reaper._task)
        self.assertIsNone(self.app.state.reaper._task)


if __name__ == "__main__":
    unittest.main()
