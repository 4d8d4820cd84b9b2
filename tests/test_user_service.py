import unittest
from unittest.mock import patch

from fastapi import HTTPException

from app.core.events import ProfileEventBus, PROFILE_UPDATED
from app.core.profile_cache import ProfileCache
from app.modules.auth.schemas import CurrentUser
from app.modules.users.schemas import ProfileUpdate, WalletUpdate
from app.modules.users.service import UserService
from tests.fakes import FakeSupabase

WALLET = "0x" + "b" * 40


class ProfileWriteTests(unittest.TestCase):
    def setUp(self):
        self.supabase = FakeSupabase()
        self.cache = ProfileCache()
        self.events = ProfileEventBus()
        self.seen = []
        self.events.subscribe(self.seen.append)
        self.service = UserService(self.supabase, cache=self.cache, events=self.events)
        self.cached = CurrentUser(id="u1", email="ada@example.com", name="Ada", skills=["python"])
        self.cache.set("u1", self.cached)

    def test_update_profile_upserts_only_given_fields_and_patches_cache(self):
        self.supabase.respond("profiles", [{"id": "u1", "name": "Ada", "bio": "Builder", "skills": ["python"]}])

        profile = self.service.update_profile("u1", ProfileUpdate(bio="Builder"))

        payload = self.supabase.queries("profiles")[0].payload("upsert")
        self.assertEqual(payload["id"], "u1")
        self.assertEqual(payload["bio"], "Builder")
        self.assertIn("updated_at", payload)
        self.assertNotIn("name", payload)
        self.assertEqual(profile.bio, "Builder")

        cached = self.cache.get("u1")
        self.assertIsNot(cached, self.cached)
        self.assertEqual(cached.bio, "Builder")
        self.assertEqual(cached.skills, ["python"])
        self.assertEqual(self.seen[0].kind, PROFILE_UPDATED)

    def test_update_profile_failure_raises_500(self):
        self.supabase.fail("profiles", RuntimeError("db down"))
        with self.assertRaises(HTTPException) as ctx:
            self.service.update_profile("u1", ProfileUpdate(name="x"))
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIs(self.cache.get("u1"), self.cached)

    def test_update_profile_for_uncached_user_leaves_cache_empty(self):
        self.supabase.respond("profiles", [{"id": "u2", "name": "Bo"}])
        self.service.update_profile("u2", ProfileUpdate(name="Bo"))
        self.assertIsNone(self.cache.get("u2"))

    @patch("app.modules.users.service.time.time", return_value=1700000000.5)
    def test_upload_profile_image_stores_and_links_public_url(self, _):
        bucket = self.supabase.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn.example/avatars/profile-images/u1-1700000000500.png"
        self.supabase.respond("profiles", [{"id": "u1", "profile_image": bucket.get_public_url.return_value}])

        response = self.service.upload_profile_image("u1", "me.png", b"\x89PNG", "image/png")

        self.supabase.storage.from_.assert_called_with("avatars")
        bucket.upload.assert_called_once_with(
            "profile-images/u1-1700000000500.png", b"\x89PNG", {"content-type": "image/png"}
        )
        self.assertEqual(response.url, bucket.get_public_url.return_value)
        payload = self.supabase.queries("profiles")[0].payload("upsert")
        self.assertEqual(payload["profile_image"], response.url)
        self.assertEqual(self.cache.get("u1").profile_image, response.url)

    def test_upload_failure_does_not_touch_profile(self):
        self.supabase.storage.from_.return_value.upload.side_effect = RuntimeError("quota")
        with self.assertRaises(HTTPException):
            self.service.upload_profile_image("u1", "me.png", b"x", "image/png")
        self.assertEqual(self.supabase.queries("profiles"), [])

    def test_update_wallet_address(self):
        self.supabase.respond("profiles", [{"id": "u1", "wallet_address": WALLET}])
        profile = self.service.update_wallet_address("u1", WALLET)
        self.assertEqual(profile.wallet_address, WALLET)
        self.assertEqual(self.cache.get("u1").wallet_address, WALLET)
        self.assertEqual(self.cache.get("u1").name, "Ada")

    def test_wallet_address_validation(self):
        with self.assertRaises(ValueError):
            WalletUpdate(wallet_address="0x123")
        with self.assertRaises(ValueError):
            ProfileUpdate(wallet_address="not-a-wallet")
        self.assertEqual(WalletUpdate(wallet_address=WALLET).wallet_address, WALLET)


class UserReadTests(unittest.TestCase):
    def setUp(self):
        self.supabase = FakeSupabase()
        self.service = UserService(self.supabase, cache=ProfileCache(), events=ProfileEventBus())

    def test_get_user_by_id_with_contract_stats(self):
        self.supabase.respond("users", {"id": "u1", "email": "f@example.com", "user_type": "freelancer",
                                        "created_at": "2024-01-01T00:00:00+00:00"})
        self.supabase.respond("profiles", {"id": "u1", "name": "Fay", "skills": ["Rust"]})
        self.supabase.respond("contracts", [
            {"id": "c1", "status": "completed", "rating": 4},
            {"id": "c2", "status": "completed", "rating": 5},
            {"id": "c3", "status": "completed", "rating": None},
            {"id": "c4", "status": "active", "rating": 1},
        ])

        user = self.service.get_user_by_id("u1")

        self.assertEqual(user.name, "Fay")
        self.assertEqual(user.skills, ["Rust"])
        self.assertEqual(user.completed_contracts, 3)
        self.assertEqual(user.ratings_count, 2)
        self.assertAlmostEqual(user.rating, 4.5)
        self.assertEqual(len(user.contracts), 4)

    def test_get_user_by_id_unknown_is_none(self):
        self.assertIsNone(self.service.get_user_by_id("ghost"))

    def test_get_user_by_id_failure_is_none(self):
        self.supabase.fail("users", RuntimeError("timeout"))
        self.assertIsNone(self.service.get_user_by_id("u1"))

    def test_get_freelancers_paginates_and_adds_stats(self):
        self.supabase.respond("users", [
            {"id": "f1", "email": "f1@example.com", "profiles": {"name": "F1", "skills": ["Go"]}},
        ])
        self.supabase.respond("contracts", None, count=3)
        self.supabase.respond("contracts", [{"rating": 4}, {"rating": 2}])

        freelancers = self.service.get_freelancers(limit=20, offset=40)

        self.assertEqual(len(freelancers), 1)
        self.assertEqual(freelancers[0].name, "F1")
        self.assertEqual(freelancers[0].completed_contracts, 3)
        self.assertAlmostEqual(freelancers[0].rating, 3.0)
        users_query = self.supabase.queries("users")[0]
        self.assertEqual(users_query.called("range"), [(40, 59)])
        self.assertIn(("user_type", "freelancer"), users_query.called("eq"))

    def test_get_investors_stat_failures_default_to_zero(self):
        self.supabase.respond("users", [{"id": "i1", "email": "i1@example.com", "profiles": [{"industries": ["ai"]}]}])
        self.supabase.fail("contracts", RuntimeError("boom"))
        self.supabase.fail("contracts", RuntimeError("boom"))

        investors = self.service.get_investors()

        self.assertEqual(investors[0].industries, ["ai"])
        self.assertEqual(investors[0].completed_investments, 0)
        self.assertEqual(investors[0].average_investment, 0)

    def test_listing_failure_returns_empty(self):
        self.supabase.fail("users", RuntimeError("boom"))
        self.assertEqual(self.service.get_freelancers(), [])

    def test_search_filters_text_skills_and_type(self):
        self.supabase.respond("users", [
            {"id": "a", "user_type": "freelancer", "profiles": {"name": "Solidity Sam", "skills": ["Solidity", "Rust"]}},
            {"id": "b", "user_type": "freelancer", "profiles": {"name": "Pat", "bio": "solidity auditor", "skills": ["Solidity"]}},
            {"id": "c", "user_type": "freelancer", "profiles": {"name": "Kim", "skills": ["Rust"]}},
        ])

        users = self.service.search_users(query="SOLIDITY", user_type="freelancer", skills=["rust"])

        self.assertEqual([u.id for u in users], ["a"])
        self.assertIn(("user_type", "freelancer"), self.supabase.queries("users")[0].called("eq"))


if __name__ == "__main__":
    unittest.main()
