"""
Tests for glob translation, mapping precedence and matching
"""
import pytest

from deploysync.domain.layout import LayoutKind, ProjectLayout
from deploysync.domain.mapping import (
    NEVER_MATCH,
    DeployConfig,
    Mapping,
    MappingOrigin,
    canonical_local_mapping,
    combine_mappings,
    compile_config,
    compile_mapping,
    default_mappings,
    extract_relative_portion,
    find_matching_mapping,
    glob_to_regex,
)

MAVEN_LAYOUT = ProjectLayout(
    kind=LayoutKind.MAVEN,
    compiled_output_root="target/classes",
    source_roots=("src/main/java",),
    web_resource_roots=("src/main/webapp",),
    artifact_name="shop",
)


def compiled(pattern: str, destination: str = "{relative}", **kwargs):
    return compile_mapping(Mapping(source_pattern=pattern, destination_template=destination, **kwargs), windows=False)


# ============================================================
# Glob translation
# ============================================================

def test_glob_translation_is_anchored_and_escaped():
    assert glob_to_regex("target/classes/**/*.class", windows=False) == r"^target/classes/(?:.*/)?[^/]*\.class$"


@pytest.mark.parametrize("prefix, ext", [
    ("target/classes", "class"),
    ("src/main/webapp", "html"),
    ("conf", "properties"),
])
def test_deep_glob_matches_and_extracts_relative_portion(prefix, ext):
    pattern = f"{prefix}/**/*.{ext}"
    path = f"{prefix}/a/b/c.{ext}"

    assert compiled(pattern).matches(path)
    assert extract_relative_portion(pattern, path) == f"a/b/c.{ext}"


def test_double_star_slash_matches_zero_directories():
    assert compiled("web/**/*.css").matches("web/site.css")


def test_single_star_does_not_cross_separators():
    mapping = compiled("conf/*.xml")

    assert mapping.matches("conf/server.xml")
    assert not mapping.matches("conf/sub/server.xml")


def test_question_mark_matches_one_non_separator_character():
    mapping = compiled("logs/app?.txt")

    assert mapping.matches("logs/app1.txt")
    assert not mapping.matches("logs/app12.txt")
    assert not mapping.matches("logs/app/.txt")


def test_regex_metacharacters_are_literal():
    mapping = compiled("web/(v1)+/*.html")

    assert mapping.matches("web/(v1)+/index.html")
    assert not mapping.matches("web/v1/index.html")


def test_match_is_anchored():
    mapping = compiled("web/*.html")

    assert not mapping.matches("x/web/index.html")
    assert not mapping.matches("web/index.html.bak")


def test_windows_separator_class():
    mapping = compile_mapping(
        Mapping(source_pattern="target/classes/**/*.class", destination_template="{relative}"),
        windows=True,
    )

    assert mapping.matches("target\\classes\\com\\example\\Foo.class")
    assert mapping.matches("target/classes/com/example/Foo.class")


@pytest.mark.parametrize("pattern", ["", "   ", "/etc/**/*", "C:/work/*", "a/***/b", "../outside/*"])
def test_malformed_pattern_degrades_to_never_match(pattern):
    result = compiled(pattern)

    assert not result.valid
    assert result.error
    assert result.matcher is NEVER_MATCH
    assert not result.matches("anything")
    assert not result.matches("")


# ============================================================
# Combination and precedence
# ============================================================

def test_compile_is_deterministic():
    local = Mapping(source_pattern="conf", destination_template="WEB-INF/classes/conf", origin=MappingOrigin.LOCAL)
    config = DeployConfig(
        project_type=LayoutKind.MAVEN,
        artifact_name="shop",
        mappings=default_mappings(MAVEN_LAYOUT),
        local_overrides=(local,),
    )

    first = [entry.matcher.pattern for entry in compile_config(config, windows=False)]
    second = [entry.matcher.pattern for entry in compile_config(config, windows=False)]

    assert first == second


def test_local_override_wins_over_generated_default():
    local = Mapping(
        source_pattern="target/classes/**/*.class",
        destination_template="WEB-INF/classes/{relative}",
        description="mine",
        origin=MappingOrigin.LOCAL,
    )
    config = DeployConfig(
        project_type=LayoutKind.MAVEN,
        artifact_name="shop",
        mappings=default_mappings(MAVEN_LAYOUT),
        local_overrides=(local,),
    )

    result = compile_config(config, windows=False)
    same_key = [entry for entry in result if entry.mapping.key == local.key]

    assert len(same_key) == 1
    assert same_key[0].mapping.origin == MappingOrigin.LOCAL
    assert same_key[0].mapping.description == "mine"
    assert result[0] is same_key[0]


def test_combine_reports_shadowed_defaults():
    local = Mapping(source_pattern="src/main/webapp/**/*", destination_template="{relative}")
    generated = default_mappings(MAVEN_LAYOUT)

    combined, shadowed = combine_mappings([local], generated)

    assert [m.source_pattern for m in shadowed] == ["src/main/webapp/**/*"]
    assert len(combined) == len(generated)
    assert combined[0].origin == MappingOrigin.LOCAL


def test_disabled_mappings_are_skipped():
    disabled_local = Mapping(source_pattern="conf", destination_template="x", enabled=False)
    disabled_generated = Mapping(source_pattern="web/**/*", destination_template="{relative}", enabled=False)

    combined, _ = combine_mappings([disabled_local], [disabled_generated])

    assert combined == []


def test_bare_local_source_and_destination_are_expanded():
    mapping = canonical_local_mapping(Mapping(source_pattern="conf", destination_template="WEB-INF/classes/conf"))

    assert mapping.source_pattern == "conf/**/*"
    assert mapping.destination_template == "WEB-INF/classes/conf/{relative}"
    assert mapping.origin == MappingOrigin.LOCAL


@pytest.mark.parametrize("source, expected", [
    ("conf/", "conf/**/*"),
    ("conf\\db", "conf/db/**/*"),
    ("config.xml", "config.xml"),
    ("lib/*.jar", "lib/*.jar"),
    ("", "**/*"),
])
def test_local_source_normalization(source, expected):
    mapping = canonical_local_mapping(Mapping(source_pattern=source, destination_template="WEB-INF"))

    assert mapping.source_pattern == expected


# ============================================================
# Matching with extension filters
# ============================================================

def test_include_extensions_never_match_other_extensions():
    mapping = compiled("src/**/*", "{relative}", include_extensions=[".class"])

    assert find_matching_mapping([mapping], "src/com/example/Foo.java") is None
    assert find_matching_mapping([mapping], "src/com/example/Foo.class") is mapping


def test_exclude_extensions_and_precedence_order():
    web = compiled("web/**/*", "{relative}", exclude_extensions=["java"])
    fallback = compiled("**/*", "misc/{relative}")

    assert find_matching_mapping([web, fallback], "web/index.html") is web
    assert find_matching_mapping([web, fallback], "web/Foo.java") is fallback


def test_extensions_are_normalized():
    mapping = Mapping(source_pattern="a/**/*", destination_template="{relative}", include_extensions=["CLASS", ".class"])

    assert mapping.include_extensions == (".class",)
    assert mapping.accepts_extension(".Class")
