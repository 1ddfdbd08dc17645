import pytest

from itharness.path_id import PathId


class TestParse:
    @pytest.mark.parametrize(
        ("raw", "parts", "absolute"),
        [
            ("/", (), True),
            ("", (), False),
            ("/a/b", ("a", "b"), True),
            ("a/b", ("a", "b"), False),
            ("//a///b/", ("a", "b"), True),
        ],
    )
    def test_parse(self, raw: str, parts: tuple[str, ...], absolute: bool) -> None:
        path = PathId.parse(raw)

        assert path.parts == parts
        assert path.absolute is absolute

    def test_parse_path_id_copies(self) -> None:
        path = PathId.parse("/a")

        assert PathId.parse(path) == path


class TestPathId:
    def test_root(self) -> None:
        assert PathId.root().is_root
        assert str(PathId.root()) == "/"

    def test_parent(self) -> None:
        assert PathId.parse("/a/b").parent == PathId.parse("/a")
        assert PathId.root().parent == PathId.root()

    def test_append_keeps_absoluteness(self) -> None:
        assert str(PathId.parse("/test").append("app")) == "/test/app"
        assert str(PathId.parse("test").append("/app")) == "test/app"

    def test_to_root_path(self) -> None:
        assert str(PathId.parse("a/b").to_root_path()) == "/a/b"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("/a/./b", "/a/b"),
            ("/a/../b", "/b"),
            ("../../a", "/a"),
            ("a/b/..", "/a"),
        ],
    )
    def test_canonical(self, raw: str, expected: str) -> None:
        assert str(PathId.parse(raw).canonical()) == expected

    def test_is_within(self) -> None:
        base = PathId.parse("/test")

        assert PathId.parse("/test").is_within(base)
        assert PathId.parse("/test/app").is_within(base)
        assert not PathId.parse("/tests/app").is_within(base)
        assert PathId.parse("/anything").is_within(PathId.root())
