import unittest
from messenger.core.registry import IdentityRegistry
from messenger.core.search import SearchIndex, tokenize, normalize_words
from messenger.core.store import MessageStore
from messenger.core.models import TextContent, ImageContent, FileContent
from messenger.core.errors import UnknownUser, UnknownChat

class TestTokenize(unittest.TestCase):
    def test_case_folding_and_punctuation(self):
        self.assertEqual(tokenize("Hello, everyone! How's KARL?"),
                         ["hello", "everyone", "how", "s", "karl"])

    def test_normalize_words_deduplicates(self):
        self.assertEqual(normalize_words(["Hello", "hello!", " ", "Karl"]), ["hello", "karl"])
        self.assertEqual(normalize_words([]), [])

    def test_underscore_separates_words(self):
        self.assertEqual(tokenize("hello_karl"), ["hello", "karl"])
        self.assertEqual(normalize_words(["__"]), [])


class TestSearchIndex(unittest.TestCase):
    def setUp(self):
        self.index = SearchIndex()
        self.index.index_message(1, TextContent("Hello everyone"))
        self.index.index_message(2, TextContent("hello Karl"))
        self.index.index_message(3, TextContent("Karl, are you there?"))

    def test_case_insensitive_match(self):
        self.assertEqual(self.index.search_words(["HELLO"]), {1, 2})

    def test_and_versus_or(self):
        self.assertEqual(self.index.search_words(["hello", "karl"]), {2})
        self.assertEqual(self.index.search_any(["hello", "karl"]), {1, 2, 3})

    def test_empty_query_matches_nothing(self):
        self.assertEqual(self.index.search_words([]), set())
        self.assertEqual(self.index.search_any([]), set())
        self.assertEqual(self.index.search_words(["?!"]), set())

    def test_missing_token(self):
        self.assertEqual(self.index.search_words(["hello", "zebra"]), set())

    def test_non_text_content_is_not_indexed(self):
        before = self.index.token_count
        self.assertEqual(self.index.index_message(4, ImageContent("http://x/cat.png", caption="hello")), 0)
        self.assertEqual(self.index.index_message(5, FileContent("notes.txt", 12)), 0)
        self.assertEqual(self.index.token_count, before)
        self.assertNotIn(4, self.index.postings("hello"))
        self.assertIn("karl", self.index)

    def test_postings_are_copies(self):
        self.index.postings("hello").add(99)
        self.assertEqual(self.index.search_words(["hello"]), {1, 2})


class TestMessageStore(unittest.TestCase):
    def setUp(self):
        self.registry = IdentityRegistry()
        self.index = SearchIndex()
        self.store = MessageStore(self.registry, self.index)
        self.max = self.registry.create_user("Max")
        self.ratsoa = self.registry.create_user("Ratsoa")
        self.alex = self.registry.create_user("Alex")
        self.chat_id = self.registry.create_group_chat("Old friends", [self.alex])

    def test_append_then_list_contains_one_new_entry(self):
        before = list(self.store.list_private_messages_for_user(self.max))
        seq = self.store.append_private_message(self.max, self.ratsoa, TextContent("Hi, Ratsoa"))
        after = list(self.store.list_private_messages_for_user(self.max))
        self.assertEqual(len(after), len(before) + 1)
        self.assertEqual(after[-1], self.store.get(seq))
        self.assertEqual(after[-1].content, TextContent("Hi, Ratsoa"))
        self.assertEqual(after[-1].sender_id, self.max)

    def test_sequence_shared_across_message_types(self):
        seqs = [
            self.store.append_private_message(self.max, self.ratsoa, TextContent("a")),
            self.store.append_group_message(self.alex, self.chat_id, TextContent("b")),
            self.store.append_private_message(self.ratsoa, self.max, TextContent("c")),
            self.store.append_group_message(self.max, self.chat_id, TextContent("d")),
        ]
        self.assertEqual(seqs, sorted(seqs))
        self.assertEqual(len(set(seqs)), 4)
        self.assertEqual(self.store.last_seq, seqs[-1])
        self.assertEqual(len(self.store), 4)

    def test_append_is_indexed_before_return(self):
        seq = self.store.append_private_message(self.max, self.ratsoa, TextContent("Hello everyone"))
        self.assertEqual(self.index.search_words(["hello"]), {seq})

    def test_unknown_ids_rejected(self):
        with self.assertRaises(UnknownUser):
            self.store.append_private_message(self.max, "ghost", TextContent("x"))
        with self.assertRaises(UnknownUser):
            self.store.append_private_message("ghost", self.max, TextContent("x"))
        with self.assertRaises(UnknownChat):
            self.store.append_group_message(self.max, "nope", TextContent("x"))
        with self.assertRaises(UnknownUser):
            self.store.append_group_message("ghost", self.chat_id, TextContent("x"))
        self.assertEqual(len(self.store), 0)
        self.assertEqual(self.store.last_seq, 0)

    def test_failed_indexing_leaves_store_unchanged(self):
        first = self.store.append_private_message(self.max, self.ratsoa, TextContent("hello"))
        with self.assertRaises(TypeError):
            self.store.append_private_message(self.max, self.ratsoa, TextContent(None))
        with self.assertRaises(TypeError):
            self.store.append_group_message(self.alex, self.chat_id, TextContent(None))
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.store.last_seq, first)
        self.assertIsNone(self.store.get(first + 1))
        self.assertEqual([m.seq for m in self.store.list_private_messages_for_user(self.max)], [first])
        self.assertEqual(list(self.store.list_group_messages(self.chat_id)), [])
        self.assertEqual(self.store.append_private_message(self.ratsoa, self.max, TextContent("again")), first + 1)

    def test_group_sender_need_not_be_member(self):
        seq = self.store.append_group_message(self.max, self.chat_id, TextContent("I'm not in here"))
        self.assertEqual([m.seq for m in self.store.list_group_messages(self.chat_id)], [seq])

    def test_messages_between(self):
        s1 = self.store.append_private_message(self.max, self.ratsoa, TextContent("1"))
        self.store.append_private_message(self.max, self.alex, TextContent("2"))
        s3 = self.store.append_private_message(self.ratsoa, self.max, TextContent("3"))
        s4 = self.store.append_private_message(self.max, self.max, TextContent("note"))
        self.assertEqual([m.seq for m in self.store.list_private_messages_between(self.max, self.ratsoa)], [s1, s3])
        self.assertEqual([m.seq for m in self.store.list_private_messages_between(self.ratsoa, self.max)], [s1, s3])
        self.assertEqual([m.seq for m in self.store.list_private_messages_between(self.max, self.max)], [s4])
        self.assertEqual(len(list(self.store.list_private_messages_for_user(self.max))), 4)

    def test_listing_is_a_snapshot(self):
        self.store.append_private_message(self.max, self.ratsoa, TextContent("first"))
        it = self.store.list_private_messages_for_user(self.max)
        self.store.append_private_message(self.max, self.ratsoa, TextContent("second"))
        self.assertEqual([m.content.text for m in it], ["first"])

    def test_get_many_orders_and_skips_unknown(self):
        a = self.store.append_private_message(self.max, self.ratsoa, TextContent("a"))
        b = self.store.append_group_message(self.alex, self.chat_id, TextContent("b"))
        self.assertEqual([m.seq for m in self.store.get_many([b, 999, a])], [a, b])
        self.assertIsNone(self.store.get(999))

if __name__ == '__main__':
    unittest.main()
