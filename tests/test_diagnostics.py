"""
Tests for build output diagnostics extraction
"""
from deploysync.domain.build import (
    extract_compiler_diagnostics,
    extract_gradle_diagnostics,
    extract_maven_diagnostics,
    mentions_busy,
)

MAVEN_OUTPUT = """[INFO] Building shop 1.0
[ERROR] /ws/src/main/java/Foo.java:[3,1] cannot find symbol
[ERROR] /ws/src/main/java/Foo.java:[3,1] cannot find symbol
[ERROR] Failed to execute goal maven-compiler-plugin:compile
[ERROR] -> [Help 1]
[ERROR] Re-run Maven using the -X switch to enable full debug logging.
[ERROR] For more information about the errors and possible solutions
[ERROR] [Help 1] http://cwiki.apache.org/confluence/display/MAVEN/MojoFailureException
"""

GRADLE_OUTPUT = """> Task :compileJava FAILED
/ws/src/main/java/Foo.java:3: error: cannot find symbol
e: /ws/src/main/kotlin/Bar.kt: (1, 1): Unresolved reference

FAILURE: Build failed with an exception.

* What went wrong:
Execution failed for task ':compileJava'.
> Compilation failed; see the compiler error output for details.

* Try:
> Run with --stacktrace option to get the stack trace.
> Get more help at https://help.gradle.org.
"""


def test_maven_diagnostics_drop_noise_and_duplicates():
    assert extract_maven_diagnostics(MAVEN_OUTPUT) == [
        "/ws/src/main/java/Foo.java:[3,1] cannot find symbol",
        "Failed to execute goal maven-compiler-plugin:compile",
    ]


def test_gradle_diagnostics():
    assert extract_gradle_diagnostics(GRADLE_OUTPUT) == [
        "/ws/src/main/java/Foo.java:3: error: cannot find symbol",
        "e: /ws/src/main/kotlin/Bar.kt: (1, 1): Unresolved reference",
        "Execution failed for task ':compileJava'.",
        "Compilation failed; see the compiler error output for details.",
    ]


def test_compiler_diagnostics_keep_non_empty_lines():
    output = "Foo.java:1: error: ';' expected\n\nFoo.java:1: error: ';' expected\n1 error\n"

    assert extract_compiler_diagnostics(output) == ["Foo.java:1: error: ';' expected", "1 error"]


def test_busy_markers():
    assert mentions_busy("Error: EBUSY: resource busy or locked, rmdir 'target'")
    assert mentions_busy("The process cannot access the file because it is being used by another process.")
    assert not mentions_busy("BUILD SUCCESS")
