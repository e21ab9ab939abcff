import unittest
from messenger.core.registry import IdentityRegistry
from messenger.core.membership import MembershipIndex
from messenger.core.errors import UnknownUser, UnknownChat, MessengerError

class TestIdentityRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = IdentityRegistry()

    def test_create_user_issues_unique_ids(self):
        a = self.registry.create_user("Max")
        b = self.registry.create_user("Max")
        self.assertNotEqual(a, b)
        self.assertEqual(self.registry.lookup_user(a).display_name, "Max")
        self.assertEqual([u.id for u in self.registry.all_users()], [a, b])

    def test_lookup_unknown_user(self):
        self.assertIsNone(self.registry.lookup_user("nope"))
        with self.assertRaises(UnknownUser):
            self.registry.require_user("nope")

    def test_create_group_chat_with_unknown_member_creates_nothing(self):
        alex = self.registry.create_user("Alex")
        with self.assertRaises(UnknownUser) as ctx:
            self.registry.create_group_chat("Old friends", {alex, "ghost"})
        self.assertEqual(ctx.exception.user_id, "ghost")
        self.assertEqual(ctx.exception.code, "unknown_user")
        self.assertEqual(self.registry.all_group_chats(), [])

    def test_errors_are_value_errors(self):
        self.assertTrue(issubclass(UnknownUser, MessengerError))
        self.assertTrue(issubclass(UnknownChat, ValueError))

    def test_returned_records_are_copies(self):
        alex = self.registry.create_user("Alex")
        chat_id = self.registry.create_group_chat("Old friends", [alex])
        chat = self.registry.lookup_group_chat(chat_id)
        chat.member_ids.add("intruder")
        user = self.registry.lookup_user(alex)
        user.display_name = "Mallory"
        self.assertEqual(self.registry.lookup_group_chat(chat_id).member_ids, {alex})
        self.assertEqual(self.registry.lookup_user(alex).display_name, "Alex")

    def test_rename(self):
        alex = self.registry.create_user("Alex")
        chat_id = self.registry.create_group_chat("Old friends")
        self.registry.rename_user(alex, "Alexander")
        self.registry.rename_group_chat(chat_id, "Best friends")
        self.assertEqual(self.registry.find_by_display_name("Alexander").id, alex)
        self.assertIsNone(self.registry.find_by_display_name("Alex"))
        self.assertEqual(self.registry.find_group_chat_by_name("Best friends").id, chat_id)
        with self.assertRaises(UnknownChat):
            self.registry.rename_group_chat("nope", "x")


class TestMembershipIndex(unittest.TestCase):
    def setUp(self):
        self.registry = IdentityRegistry()
        self.membership = MembershipIndex(self.registry)
        self.alex = self.registry.create_user("Alex")
        self.viktor = self.registry.create_user("Victor")
        self.kate = self.registry.create_user("Kate")
        self.chat_id = self.registry.create_group_chat("Old friends", [self.alex, self.viktor])

    def test_add_is_idempotent(self):
        self.assertTrue(self.membership.add_member(self.chat_id, self.kate))
        self.assertFalse(self.membership.add_member(self.chat_id, self.kate))
        self.assertEqual(self.membership.list_members(self.chat_id), {self.alex, self.viktor, self.kate})

    def test_remove_is_idempotent(self):
        self.assertFalse(self.membership.remove_member(self.chat_id, self.kate))
        self.assertTrue(self.membership.remove_member(self.chat_id, self.viktor))
        self.assertFalse(self.membership.remove_member(self.chat_id, self.viktor))
        self.assertEqual(self.membership.list_members(self.chat_id), {self.alex})

    def test_add_then_remove_round_trip(self):
        before = self.membership.list_members(self.chat_id)
        self.membership.add_member(self.chat_id, self.kate)
        self.membership.remove_member(self.chat_id, self.kate)
        self.assertEqual(self.membership.list_members(self.chat_id), before)

    def test_unknown_ids(self):
        with self.assertRaises(UnknownChat):
            self.membership.add_member("nope", self.kate)
        with self.assertRaises(UnknownUser):
            self.membership.add_member(self.chat_id, "ghost")
        with self.assertRaises(UnknownChat):
            self.membership.remove_member("nope", self.kate)
        with self.assertRaises(UnknownChat):
            self.membership.list_members("nope")
        self.assertFalse(self.membership.remove_member(self.chat_id, "ghost"))

    def test_is_member_and_chats_for_user(self):
        other = self.registry.create_group_chat("Work", [self.viktor])
        self.assertTrue(self.membership.is_member(self.chat_id, self.alex))
        self.assertFalse(self.membership.is_member(other, self.alex))
        self.assertFalse(self.membership.is_member("nope", self.alex))
        names = sorted(c.name for c in self.membership.chats_for_user(self.viktor))
        self.assertEqual(names, ["Old friends", "Work"])

if __name__ == '__main__':
    unittest.main()
