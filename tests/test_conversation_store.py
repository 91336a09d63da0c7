"""Tests for ConversationStore."""

from guildbridge.core.conversation import ConversationStore


class TestConversationStore:
    def test_empty_channel_has_no_history(self):
        assert ConversationStore().get_history("c1") == []

    def test_exchange_is_recorded_in_order(self):
        store = ConversationStore()
        store.append_exchange("c1", "What is X?", "X is a thing.")
        history = store.get_history("c1")
        assert [(m.role, m.content) for m in history] == [
            ("user", "What is X?"),
            ("assistant", "X is a thing."),
        ]

    def test_history_keeps_last_messages(self):
        store = ConversationStore(history_limit=4)
        for index in range(5):
            store.append_exchange("c1", f"q{index}", f"a{index}")
        contents = [m.content for m in store.get_history("c1")]
        print(f"\n OUTPUT: {contents}")
        assert contents == ["q3", "a3", "q4", "a4"]

    def test_channels_are_isolated(self):
        store = ConversationStore()
        store.append_exchange("c1", "one", "1")
        store.append_exchange("c2", "two", "2")
        assert [m.content for m in store.get_history("c2")] == ["two", "2"]

    def test_least_recently_used_channel_is_evicted(self):
        store = ConversationStore(max_channels=2)
        store.append_exchange("c1", "q", "a")
        store.append_exchange("c2", "q", "a")
        store.get_history("c1")
        store.append_exchange("c3", "q", "a")

        assert len(store) == 2
        assert store.get_history("c2") == []
        assert store.get_history("c1") != []

    def test_clear_evicts_channel(self):
        store = ConversationStore()
        store.append_exchange("c1", "q", "a")
        assert store.clear("c1") is True
        assert store.clear("c1") is False
        assert len(store) == 0

    def test_clear_all(self):
        store = ConversationStore()
        store.append_exchange("c1", "q", "a")
        store.append_exchange("c2", "q", "a")
        assert store.clear_all() == 2
        assert len(store) == 0
