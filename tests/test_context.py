import threading

from gevnet.context import KeyValueContext

MISSING = object()


def test_key_value_context():
    ctx = KeyValueContext()
    ctx.delete("1")

    ctx.set("1", 1)
    ctx.set("2", 2)
    ctx.set("3", 3)

    assert ctx.get("1") == 1
    assert ctx.get("2") == 2
    assert ctx.get("3") == 3

    ctx.delete("1")
    assert ctx.get("1", MISSING) is MISSING
    assert "1" not in ctx

    ctx.reset()
    assert ctx.get("2", MISSING) is MISSING


def test_overwrite_and_default():
    ctx = KeyValueContext()
    ctx.set("k", "a")
    ctx.set("k", "b")
    assert ctx.get("k") == "b"
    assert ctx.get("absent") is None


def test_concurrent_sets():
    ctx = KeyValueContext()

    def worker(start):
        for i in range(start, start + 100):
            ctx.set(str(i), i)

    threads = [threading.Thread(target=worker, args=(n * 100,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert all(ctx.get(str(i)) == i for i in range(400))