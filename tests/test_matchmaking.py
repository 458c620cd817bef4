import itertools

import pytest

from matchmaking import WaitingQueue, compatible
from registry import Connection
from schemas.messages import Preferences

VALUES = ["any", "en", "fr"]
ALL_PREFS = [
    Preferences(language=language, country=country, gender=gender)
    for language, country, gender in itertools.product(VALUES, ["any", "us"], ["any", "male", "female"])
]


def test_compatible_is_symmetric():
    for p1, p2 in itertools.product(ALL_PREFS, repeat=2):
        assert compatible(p1, p2) == compatible(p2, p1)


@pytest.mark.parametrize("other", ["en", "fr", "ar", "any"])
def test_wildcard_absorbs_language(other):
    assert compatible(Preferences(language="any"), Preferences(language=other))


def test_all_axes_must_match():
    base = Preferences(language="en", country="us", gender="female")
    assert compatible(base, Preferences(language="en", country="us", gender="female"))
    assert not compatible(base, Preferences(language="en", country="us", gender="male"))
    assert not compatible(base, Preferences(language="en", country="de", gender="female"))
    assert not compatible(base, Preferences(language="fr", country="us", gender="female"))
    assert compatible(base, Preferences())


def test_preferences_default_to_wildcard():
    prefs = Preferences(language=None, country="")
    assert prefs == Preferences(language="any", country="any", gender="any")


def test_enqueue_replaces_existing_entry():
    queue = WaitingQueue()
    a = Connection("a")
    queue.enqueue(a, Preferences(language="en"))
    queue.enqueue(Connection("b"), Preferences(language="fr"))
    queue.enqueue(a, Preferences(language="de"))

    entries = queue.entries()
    assert [e.connection_id for e in entries] == ["b", "a"]
    assert entries[1].prefs.language == "de"


def test_dequeue():
    queue = WaitingQueue()
    a = Connection("a")
    queue.enqueue(a, Preferences())
    assert "a" in queue
    assert queue.dequeue("a")
    assert "a" not in queue
    assert not queue.dequeue("a")
    assert len(queue) == 0


def test_fifo_bias_pairs_earliest_compatible():
    queue = WaitingQueue()
    a, b, c = Connection("a"), Connection("b"), Connection("c")
    queue.enqueue(a, Preferences(language="en"))
    queue.enqueue(b, Preferences(language="fr"))
    assert queue.find_and_remove_compatible_pair() is None

    queue.enqueue(c, Preferences(language="en"))
    first, second = queue.find_and_remove_compatible_pair()
    assert (first.connection_id, second.connection_id) == ("a", "c")
    assert [e.connection_id for e in queue.entries()] == ["b"]


def test_first_waiter_takes_first_compatible_partner():
    queue = WaitingQueue()
    queue.enqueue(Connection("a"), Preferences())
    queue.enqueue(Connection("b"), Preferences(gender="male"))
    queue.enqueue(Connection("c"), Preferences(gender="male"))

    first, second = queue.find_and_remove_compatible_pair()
    assert (first.connection_id, second.connection_id) == ("a", "b")
    assert [e.connection_id for e in queue.entries()] == ["c"]


def test_no_pair_in_single_entry_queue():
    queue = WaitingQueue()
    queue.enqueue(Connection("a"), Preferences())
    assert queue.find_and_remove_compatible_pair() is None
    assert len(queue) == 1
