from __future__ import annotations

from inkwell import models
from inkwell.utils.content import read_time
from inkwell.utils.slugs import slugify, unique_slug


def test_slugify_basic():
    assert slugify("Hello, World!") == "hello-world"


def test_slugify_strips_diacritics_and_collapses_whitespace():
    assert slugify("  Crème   Brûlée -- recipe ") == "creme-brulee-recipe"


def test_slugify_empty_for_punctuation_only():
    assert slugify("!!!") == ""
    assert slugify(None) == ""


def test_same_title_gets_suffixes(create_post, author):
    slugs = [create_post(author, title="Same Title")["slug"] for _ in range(4)]
    assert slugs == ["same-title", "same-title-1", "same-title-2", "same-title-3"]


def test_empty_slug_falls_back_to_post(create_post, author):
    first = create_post(author, title="???")
    second = create_post(author, title="!!!")
    assert first["slug"] == "post"
    assert second["slug"] == "post-1"


def test_unique_slug_excludes_own_row(db, author):
    post = models.Post(author_id=author.id, title="Mine", slug="mine", content="")
    db.add(post)
    db.commit()

    assert unique_slug(db, models.Post, "Mine") == "mine-1"
    assert unique_slug(db, models.Post, "Mine", exclude_id=post.id) == "mine"


def test_read_time():
    assert read_time("") == 1
    assert read_time("word " * 200) == 1
    assert read_time("word " * 201) == 2
    assert read_time("<h1>Title</h1>" + "<b>x</b> " * 450) == 3


def test_slugify_transliterates_non_latin_titles():
    assert slugify("Привет мир") == "privet-mir"
    assert slugify("snake_case_title") == "snake-case-title"
