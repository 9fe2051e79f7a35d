import threading

from concurrency_utils import atomic, get_lock


def test_same_name_same_lock():
    assert get_lock("config_store:a") is get_lock("config_store:a")
    assert get_lock("config_store:a") is not get_lock("config_store:b")


def test_atomic_is_reentrant():
    with atomic("reentrant"):
        with atomic("reentrant"):
            pass


def test_atomic_serializes_read_modify_write():
    counter = {"n": 0}

    def bump():
        for _ in range(500):
            with atomic("counter"):
                n = counter["n"]
                counter["n"] = n + 1

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counter["n"] == 2000
