import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

from fastapi import BackgroundTasks, HTTPException

from app.core.events import ProfileEventBus, PROFILE_REFRESHED
from app.core.profile_cache import ProfileCache
from app.modules.auth import service as auth_service_module
from app.modules.auth.schemas import LoginRequest, RegisterRequest
from app.modules.auth.service import AuthService
from tests.fakes import FakeSupabase

SESSION_USER = {
    "id": "u1",
    "email": "ada@example.com",
    "user_metadata": {"user_type": "investor", "name": "Ada"},
    "app_metadata": {},
    "created_at": "2024-01-01T00:00:00+00:00",
}


class CurrentUserTests(unittest.TestCase):
    def setUp(self):
        self.supabase = FakeSupabase()
        self.cache = ProfileCache()
        self.events = ProfileEventBus()
        self.seen = []
        self.events.subscribe(self.seen.append)
        self.service = AuthService(self.supabase, cache=self.cache, events=self.events)

    def test_returns_minimal_user_and_schedules_refresh(self):
        tasks = BackgroundTasks()
        user = self.service.get_current_user(SESSION_USER, tasks)

        self.assertEqual(user.id, "u1")
        self.assertEqual(user.user_type, "investor")
        self.assertEqual(user.name, "Ada")
        self.assertFalse(user.profile_loaded)
        self.assertIs(self.cache.get("u1"), user)
        self.assertEqual(len(tasks.tasks), 1)
        self.assertEqual(self.supabase.executed, [])

    def test_cache_hit_returns_cached_object_without_refresh(self):
        first = self.service.get_current_user(SESSION_USER, BackgroundTasks())
        tasks = BackgroundTasks()
        second = self.service.get_current_user(SESSION_USER, tasks)
        self.assertIs(first, second)
        self.assertEqual(len(tasks.tasks), 0)

    def test_refresh_replaces_cache_entry_and_notifies(self):
        self.supabase.respond("profiles", {
            "id": "u1", "name": "Ada L.", "bio": "Angel", "industries": ["fintech"],
            "wallet_address": "0x" + "a" * 40,
        })
        self.supabase.respond("matches", [{"id": "m1"}, {"id": "m2"}])
        minimal = self.service.get_current_user(SESSION_USER)

        full = self.service.refresh_profile(minimal)

        self.assertTrue(full.profile_loaded)
        self.assertEqual(full.name, "Ada L.")
        self.assertEqual(full.industries, ["fintech"])
        self.assertEqual(full.pending_matches, ["m1", "m2"])
        self.assertIs(self.cache.get("u1"), full)
        self.assertEqual([e.kind for e in self.seen], [PROFILE_REFRESHED])
        match_query = self.supabase.queries("matches")[0]
        self.assertIn(("investor_id", "u1"), match_query.called("eq"))

    def test_failed_refresh_keeps_minimal_and_does_not_raise(self):
        self.supabase.fail("profiles", RuntimeError("network down"))
        minimal = self.service.get_current_user(SESSION_USER)

        result = self.service.refresh_profile(minimal)

        self.assertIsNone(result)
        self.assertIs(self.cache.get("u1"), minimal)
        self.assertFalse(self.cache.get("u1").profile_loaded)
        self.assertEqual(self.seen, [])

    def test_refresh_after_logout_leaves_cache_empty(self):
        self.supabase.respond("profiles", {"id": "u1", "name": "Ada L."})
        minimal = self.service.get_current_user(SESSION_USER, BackgroundTasks())
        self.service.logout("token", "u1")

        result = self.service.refresh_profile(minimal)

        self.assertIsNone(result)
        self.assertNotIn("u1", self.cache)
        self.assertEqual(self.seen, [])

    def test_refresh_does_not_overwrite_newer_entry(self):
        minimal = self.service.get_current_user(SESSION_USER)
        patched = self.cache.patch("u1", {"bio": "edited meanwhile"})

        self.assertIsNone(self.service.refresh_profile(minimal))
        self.assertIs(self.cache.get("u1"), patched)

    def test_missing_profile_row_still_marks_loaded(self):
        minimal = self.service.get_current_user(SESSION_USER)
        full = self.service.refresh_profile(minimal)
        self.assertTrue(full.profile_loaded)
        self.assertEqual(full.name, "Ada")
        self.assertEqual(full.skills, [])

    def test_unknown_user_type_defaults_to_freelancer(self):
        user = self.service.get_current_user({"id": "u9", "email": None, "user_metadata": {"user_type": "admin"}})
        self.assertEqual(user.user_type, "freelancer")


class AuthFlowTests(unittest.TestCase):
    def setUp(self):
        auth_service_module._AUTH_USER_CACHE.clear()
        self.supabase = FakeSupabase()
        self.cache = ProfileCache()
        self.service = AuthService(self.supabase, cache=self.cache, events=ProfileEventBus())

    def test_register_stores_user_type_in_metadata(self):
        self.supabase.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="u1", email="ada@example.com")
        )
        response = self.service.register(RegisterRequest(
            email="ada@example.com", password="Secret123", user_type="investor", name="Ada"
        ))
        self.assertEqual(response.user_type, "investor")
        payload = self.supabase.auth.sign_up.call_args[0][0]
        self.assertEqual(payload["options"]["data"], {"user_type": "investor", "name": "Ada"})

    def test_register_existing_user_is_400(self):
        self.supabase.auth.sign_up.side_effect = Exception("User already registered")
        with self.assertRaises(HTTPException) as ctx:
            self.service.register(RegisterRequest(
                email="ada@example.com", password="Secret123", user_type="freelancer"
            ))
        self.assertEqual(ctx.exception.status_code, 400)

    def test_weak_password_rejected(self):
        with self.assertRaises(ValueError):
            RegisterRequest(email="ada@example.com", password="short", user_type="freelancer")

    def test_login_invalid_credentials_is_401(self):
        self.supabase.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
        with self.assertRaises(HTTPException) as ctx:
            self.service.login(LoginRequest(email="ada@example.com", password="nope"))
        self.assertEqual(ctx.exception.status_code, 401)

    def test_login_returns_tokens_and_user_type(self):
        self.supabase.auth.sign_in_with_password.return_value = SimpleNamespace(
            user=SimpleNamespace(id="u1", email="ada@example.com", user_metadata={"user_type": "investor"}),
            session=SimpleNamespace(access_token="at", refresh_token="rt"),
        )
        token = self.service.login(LoginRequest(email="ada@example.com", password="Secret123"))
        self.assertEqual(token.access_token, "at")
        self.assertEqual(token.refresh_token, "rt")
        self.assertEqual(token.user_type, "investor")

    def test_oauth_unsupported_provider_is_400(self):
        with self.assertRaises(HTTPException) as ctx:
            self.service.login_with_oauth("myspace")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_oauth_redirects_to_callback(self):
        self.supabase.auth.sign_in_with_oauth.return_value = SimpleNamespace(url="https://accounts.example/o")
        response = self.service.login_with_oauth("google")
        self.assertEqual(response.url, "https://accounts.example/o")
        options = self.supabase.auth.sign_in_with_oauth.call_args[0][0]["options"]
        self.assertTrue(options["redirect_to"].endswith("/auth/callback"))

    def test_reset_password_links_to_reset_page(self):
        self.service.reset_password("ada@example.com")
        email, options = self.supabase.auth.reset_password_for_email.call_args[0]
        self.assertEqual(email, "ada@example.com")
        self.assertTrue(options["redirect_to"].endswith("/reset-password"))

    def test_update_password_requires_service_role(self):
        with self.assertRaises(HTTPException) as ctx:
            self.service.update_password("token", "Secret123")
        self.assertEqual(ctx.exception.status_code, 500)

    def test_update_password_uses_admin_api(self):
        admin = MagicMock()
        admin.auth.admin.update_user_by_id.return_value = SimpleNamespace(user=SimpleNamespace(id="u1"))
        self.supabase.auth.get_user.return_value = SimpleNamespace(user=SimpleNamespace(id="u1"))
        service = AuthService(self.supabase, admin_supabase=admin, cache=self.cache, events=ProfileEventBus())

        self.assertTrue(service.update_password("reset-token", "Secret123"))
        self.supabase.auth.get_user.assert_called_once_with(jwt="reset-token")
        admin.auth.admin.update_user_by_id.assert_called_once_with("u1", {"password": "Secret123"})

    def test_update_password_bad_token_is_401(self):
        self.supabase.auth.get_user.side_effect = Exception("JWT expired")
        service = AuthService(self.supabase, admin_supabase=MagicMock(), cache=self.cache, events=ProfileEventBus())
        with self.assertRaises(HTTPException) as ctx:
            service.update_password("stale", "Secret123")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_logout_drops_cached_profile(self):
        self.service.get_current_user(SESSION_USER)
        self.assertTrue(self.service.logout("token", "u1"))
        self.assertIsNone(self.cache.get("u1"))

    def test_check_email_exists_calls_rpc(self):
        self.supabase.respond("rpc:check_email_exists", True)
        response = self.service.check_email_exists("ada@example.com")
        self.assertTrue(response.exists)
        rpc_query = self.supabase.queries("rpc:check_email_exists")[0]
        self.assertEqual(rpc_query.payload("rpc"), {"email_to_check": "ada@example.com"})

    def test_session_user_is_cached_per_token(self):
        self.supabase.auth.get_user.return_value = SimpleNamespace(user=SimpleNamespace(
            id="u1", email="ada@example.com", user_metadata={"user_type": "investor"},
            app_metadata={}, created_at="2024-01-01T00:00:00+00:00", updated_at=None,
        ))
        first = self.service.get_session_user("tok")
        second = self.service.get_session_user("tok")
        self.assertEqual(first["id"], "u1")
        self.assertIs(first, second)
        self.assertEqual(self.supabase.auth.get_user.call_count, 1)


if __name__ == "__main__":
    unittest.main()
