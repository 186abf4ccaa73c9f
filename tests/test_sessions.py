from portfolio_builder.sessions import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_same_id_returns_same_session():
    registry = SessionRegistry()
    assert registry.get("a") is registry.get("a")
    assert registry.get("a") is not registry.get("b")


def test_registry_is_bounded_by_max_sessions():
    registry = SessionRegistry(max_sessions=3)
    for n in range(10):
        registry.get(f"s{n}")
    assert len(registry) == 3
    assert [f"s{n}" in registry for n in (7, 8, 9)] == [True, True, True]


def test_recently_used_session_survives_eviction():
    registry = SessionRegistry(max_sessions=2)
    first = registry.get("a")
    registry.get("b")
    registry.get("a")
    registry.get("c")
    assert "b" not in registry
    assert registry.get("a") is first


def test_idle_sessions_expire():
    clock = FakeClock()
    registry = SessionRegistry(ttl_s=60, clock=clock)
    old = registry.get("a")
    old.store.set_field("name", "Ada")

    clock.now = 30
    registry.get("b")
    clock.now = 80
    registry.get("b")
    assert "a" not in registry and "b" in registry

    fresh = registry.get("a")
    assert fresh is not old
    assert fresh.store.get().name == "Your Name"


def test_evicted_session_stops_its_preview():
    registry = SessionRegistry(max_sessions=1)
    sess = registry.get("a")
    version = sess.preview.version
    registry.get("b")
    sess.store.set_field("name", "Ada")
    assert sess.preview.version == version


def test_drop_forgets_session():
    registry = SessionRegistry()
    registry.get("a")
    registry.drop("a")
    registry.drop("missing")
    assert len(registry) == 0
