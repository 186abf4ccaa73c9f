import itertools
import random

import pytest

from portfolio_builder.errors import DuplicateSkillError, PortfolioValidationError, StoreError
from portfolio_builder.models import Contact, PortfolioDocument, Project, Skill, ThemeSettings
from portfolio_builder.store import PortfolioStore


def counter_ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


def test_new_store_is_fully_defined():
    doc = PortfolioStore().get()
    assert doc.name == "" and doc.headline == "" and doc.about_me == ""
    assert doc.projects == () and doc.skills == () and doc.experiences == () and doc.testimonials == ()
    assert doc.contact == Contact()
    assert doc.theme == ThemeSettings(color_scheme="dark", layout="standard")


def test_add_uses_injected_id_factory():
    store = PortfolioStore(id_factory=counter_ids())
    a = store.add_item("projects", title="A", tech_stack="Go", description="first one")
    b = store.add_item("projects", title="B", tech_stack="Go", description="second one")
    assert (a.id, b.id) == ("id-1", "id-2")
    assert [p.title for p in store.get().projects] == ["A", "B"]


def test_random_edit_sequences_keep_ids_unique_and_order_stable():
    rng = random.Random(7)
    store = PortfolioStore(id_factory=counter_ids())
    expected: list[tuple[str, str]] = []  # (id, role) in insertion order

    for step in range(300):
        op = rng.choice(["add", "add", "update", "remove", "remove_missing"])
        if op == "add" or not expected:
            item = store.add_item("experiences", role=f"r{step}", company="c", period="p", description="d")
            expected.append((item.id, item.role))
        elif op == "update":
            idx = rng.randrange(len(expected))
            item_id = expected[idx][0]
            assert store.update_item("experiences", item_id, role=f"u{step}") is True
            expected[idx] = (item_id, f"u{step}")
        elif op == "remove":
            idx = rng.randrange(len(expected))
            assert store.remove_item("experiences", expected[idx][0]) is True
            del expected[idx]
        else:
            assert store.remove_item("experiences", "missing") is False

        ids = [e.id for e in store.get().experiences]
        assert len(ids) == len(set(ids))
        assert [(e.id, e.role) for e in store.get().experiences] == expected


def test_duplicate_skill_is_rejected_case_insensitively():
    store = PortfolioStore(id_factory=counter_ids())
    store.add_skill("JavaScript")
    before = store.get()

    with pytest.raises(DuplicateSkillError):
        store.add_skill("javascript")

    assert store.get() is before
    assert [s.name for s in store.get().skills] == ["JavaScript"]


def test_blank_skill_is_rejected():
    store = PortfolioStore()
    with pytest.raises(PortfolioValidationError):
        store.add_skill("   ")
    assert store.get().skills == ()


def test_skill_name_is_trimmed():
    store = PortfolioStore()
    assert store.add_skill("  Rust ").name == "Rust"


def test_update_and_remove_unknown_id_are_noops():
    store = PortfolioStore(id_factory=counter_ids())
    store.add_item("projects", title="A", tech_stack="Go", description="first one")
    before = store.get()
    seen = []
    store.subscribe(seen.append)

    assert store.update_item("projects", "nope", title="X") is False
    assert store.remove_item("projects", "nope") is False

    assert store.get() == before
    assert seen == []


def test_id_match_is_case_sensitive():
    store = PortfolioStore(id_factory=lambda: "abc")
    store.add_skill("Go")
    assert store.remove_item("skills", "ABC") is False
    assert len(store.get().skills) == 1


def test_set_field_rejects_duplicate_ids_and_keeps_state():
    store = PortfolioStore()
    store.set_field("skills", [Skill(id="1", name="Go")])
    before = store.get()

    with pytest.raises(StoreError):
        store.set_field("skills", [Skill(id="2", name="A"), Skill(id="2", name="B")])

    assert store.get() is before


def test_set_field_rejects_wrong_types():
    store = PortfolioStore()
    with pytest.raises(StoreError):
        store.set_field("name", 42)
    with pytest.raises(StoreError):
        store.set_field("projects", [Skill(id="1", name="Go")])
    with pytest.raises(StoreError):
        store.set_field("theme", {"layout": "minimal"})
    with pytest.raises(StoreError):
        store.set_field("nickname", "x")
    assert store.get() == PortfolioDocument()


def test_set_field_normalises_lists_to_tuples():
    store = PortfolioStore()
    store.set_field("skills", [Skill(id="1", name="Go")])
    assert isinstance(store.get().skills, tuple)


def test_update_cannot_change_id():
    store = PortfolioStore(id_factory=counter_ids())
    item = store.add_item("skills", name="Go")
    with pytest.raises(StoreError):
        store.update_item("skills", item.id, id="other")


def test_replace_all_swaps_snapshot_and_validates():
    store = PortfolioStore()
    doc = PortfolioDocument(name="Ada", skills=(Skill(id="1", name="Go"),))
    store.replace_all(doc)
    assert store.get() == doc

    bad = PortfolioDocument(skills=(Skill(id="1", name="Go"), Skill(id="1", name="Rust")))
    with pytest.raises(StoreError):
        store.replace_all(bad)
    assert store.get() == doc


def test_listeners_see_every_mutation():
    store = PortfolioStore(id_factory=counter_ids())
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.set_field("name", "Ada")
    store.add_skill("Go")
    assert [d.name for d in seen] == ["Ada", "Ada"]
    assert seen[-1] is store.get()

    unsubscribe()
    store.set_field("name", "Grace")
    assert len(seen) == 2


def test_testimonial_gets_default_avatar():
    store = PortfolioStore()
    t = store.add_testimonial("Jane Doe", "CTO", "Great to work with, every time.")
    assert t.avatar_url.endswith("seed=Jane%20Doe")
    own = store.add_testimonial("Bo", "PM", "Shipped everything on time.", "https://img.example/bo.png")
    assert own.avatar_url == "https://img.example/bo.png"


def test_end_to_end_update_after_missing_remove():
    store = PortfolioStore()
    store.replace_all(
        PortfolioDocument(
            projects=(
                Project(id="p1", title="App", tech_stack="React,Node", description="desc", link="https://x.com"),
            )
        )
    )

    store.remove_item("projects", "f3c1d9a0b2e4")
    assert len(store.get().projects) == 1

    store.update_item("projects", "p1", description="new desc")
    (project,) = store.get().projects
    assert project.description == "new desc"
    assert (project.id, project.title, project.tech_stack, project.link) == ("p1", "App", "React,Node", "https://x.com")


def test_renaming_a_skill_onto_another_is_rejected():
    store = PortfolioStore(id_factory=counter_ids())
    store.add_skill("React")
    vue = store.add_skill("Vue")
    before = store.get()

    with pytest.raises(StoreError):
        store.update_item("skills", vue.id, name="react")
    with pytest.raises(StoreError):
        store.set_field("skills", [Skill(id="a", name="Go"), Skill(id="b", name=" GO ")])

    assert store.get() is before
    assert [s.name for s in store.get().skills] == ["React", "Vue"]


def test_item_fields_must_be_strings():
    store = PortfolioStore(id_factory=counter_ids())
    project = store.add_item("projects", title="A", tech_stack="Go", description="first one")
    before = store.get()

    with pytest.raises(StoreError):
        store.update_item("projects", project.id, title=None)
    with pytest.raises(StoreError):
        store.add_item("projects", title="B", tech_stack="Go", description=5)
    with pytest.raises(StoreError):
        store.add_item("experiences", role="r", company=["c"], period="p", description="d")
    with pytest.raises(StoreError):
        store.set_field("contact", Contact(email=None))

    assert store.get() is before


def test_optional_item_fields_accept_none():
    store = PortfolioStore(id_factory=counter_ids())
    project = store.add_item("projects", title="A", tech_stack="Go", description="d", link="https://a.dev")
    assert store.update_item("projects", project.id, link=None) is True
    assert store.get().projects[0].link is None
