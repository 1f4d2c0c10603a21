"""
Project constants definitions
"""

# ============================================================
# Workspace Files
# ============================================================

DEFAULT_SETTINGS_FILE = "deploysync.toml"
DEFAULT_MAPPING_FILE = ".deploysync/mappings.json"
ENV_PREFIX = "DEPLOYSYNC_"

# ============================================================
# Java Conventions
# ============================================================

COMPILED_EXTENSION = ".class"
SOURCE_EXTENSION = ".java"
ARCHIVE_EXTENSION = ".war"
CLASSES_DESTINATION = "WEB-INF/classes"
LIB_DESTINATION = "WEB-INF/lib"
RELATIVE_PLACEHOLDER = "{relative}"

# Subdirectories of the target that a reconciling sync leaves alone
PROTECTED_TARGET_DIRS = ("classes", "lib")

# ============================================================
# Watch Defaults
# ============================================================

DEFAULT_DEBOUNCE_MS = 300
DEFAULT_BYPASS_PATTERNS = "copy,副本,コピー,копия"
TRANSIENT_SUFFIXES = (".tmp", ".temp", "~")
IGNORED_DIR_NAMES = (".svn", ".git")

# Delays (seconds) of the post-edit output probes
RESCAN_PROBE_DELAYS = (0.5, 1.0, 1.5, 2.5)
COMPREHENSIVE_SCAN_DELAY = 3.0

# Modification windows (seconds) used by the probes
PACKAGE_CLASS_WINDOW = 10.0
DEPENDENT_CLASS_WINDOW = 15.0

# ============================================================
# Build Defaults
# ============================================================

DEFAULT_BUILD_STRATEGY = "auto"
DEFAULT_COMPILE_ENCODING = "UTF-8"
DEFAULT_BUILD_TIMEOUT = 900
DEFAULT_PROCESS_PATTERN = "catalina"
MAX_BUSY_RETRIES = 3

BUSY_MARKERS = (
    "EBUSY",
    "resource busy or locked",
    "being used by another process",
)

MAVEN_NOISE_MARKERS = (
    "re-run Maven",
    "Re-run Maven",
    "[Help",
    "For more information",
    "http",
)

GRADLE_NOISE_MARKERS = (
    "Run with --",
    "Get more help",
    "http",
)
