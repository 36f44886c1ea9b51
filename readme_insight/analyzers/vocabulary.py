"""Shared vocabulary tables for the heuristic analyzers.

Canonical language ids are lowercase (``javascript``, ``csharp``, ``cpp``).
Tables are module-level constants and never mutated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from readme_insight.analyzers.types import CommandCategory


@dataclass(frozen=True)
class LanguageVocabulary:
    """Signals that point at one language."""

    name: str
    block_tags: tuple[str, ...]
    keywords: tuple[str, ...]
    extensions: tuple[str, ...] = ()
    frameworks: tuple[str, ...] = ()
    manifests: tuple[str, ...] = ()
    heading_words: tuple[str, ...] = ()


LANGUAGES: tuple[LanguageVocabulary, ...] = (
    LanguageVocabulary(
        name="javascript",
        block_tags=("javascript", "js", "jsx", "mjs", "cjs", "node", "nodejs"),
        keywords=("javascript", "node.js", "nodejs", "npm", "yarn", "pnpm"),
        extensions=(".js", ".mjs", ".cjs", ".jsx"),
        frameworks=(
            "React", "Vue", "Vue.js", "Express", "Express.js", "Next.js", "Svelte", "Ember.js",
        ),
        manifests=("package.json", "package-lock.json", "yarn.lock"),
        heading_words=("javascript", "node", "node.js", "nodejs", "npm"),
    ),
    LanguageVocabulary(
        name="typescript",
        block_tags=("typescript", "ts", "tsx"),
        keywords=("typescript",),
        extensions=(".ts", ".tsx"),
        frameworks=("Angular", "NestJS", "Deno"),
        manifests=("tsconfig.json",),
        heading_words=("typescript",),
    ),
    LanguageVocabulary(
        name="python",
        block_tags=("python", "py", "python3", "py3", "pycon", "ipython"),
        keywords=("python", "pip", "conda", "pipenv", "poetry", "virtualenv"),
        extensions=(".py",),
        frameworks=("Django", "Flask", "FastAPI", "pandas", "NumPy", "Pydantic"),
        manifests=("requirements.txt", "setup.py", "pyproject.toml", "pipfile", "setup.cfg"),
        heading_words=("python", "pip", "pypi"),
    ),
    LanguageVocabulary(
        name="java",
        block_tags=("java",),
        keywords=("java", "maven", "gradle", "jvm"),
        extensions=(".java", ".jar"),
        frameworks=("Spring", "Spring Boot", "Hibernate", "Quarkus"),
        manifests=("pom.xml", "build.gradle"),
        heading_words=("java", "maven", "gradle"),
    ),
    LanguageVocabulary(
        name="kotlin",
        block_tags=("kotlin", "kt", "kts"),
        keywords=("kotlin",),
        extensions=(".kt", ".kts"),
        frameworks=("Ktor",),
        manifests=("build.gradle.kts",),
        heading_words=("kotlin",),
    ),
    LanguageVocabulary(
        name="go",
        block_tags=("go", "golang"),
        keywords=("golang",),
        extensions=(".go",),
        frameworks=("Gin", "gorilla/mux", "Cobra"),
        manifests=("go.mod", "go.sum"),
        heading_words=("go", "golang"),
    ),
    LanguageVocabulary(
        name="rust",
        block_tags=("rust", "rs"),
        keywords=("rust", "cargo", "rustup", "crates.io"),
        extensions=(".rs",),
        frameworks=("Actix", "actix-web", "Tokio", "Axum", "Serde"),
        manifests=("cargo.toml", "cargo.lock"),
        heading_words=("rust", "cargo"),
    ),
    LanguageVocabulary(
        name="php",
        block_tags=("php",),
        keywords=("php", "composer", "packagist"),
        extensions=(".php",),
        frameworks=("Laravel", "Symfony", "WordPress"),
        manifests=("composer.json", "composer.lock"),
        heading_words=("php", "composer"),
    ),
    LanguageVocabulary(
        name="csharp",
        block_tags=("csharp", "cs", "c#"),
        keywords=("c#", "csharp", "dotnet", ".net", "nuget"),
        extensions=(".cs", ".csproj", ".sln"),
        frameworks=("ASP.NET", "Blazor", "Xamarin"),
        manifests=("packages.config", "global.json"),
        heading_words=("c#", ".net", "dotnet", "csharp"),
    ),
    LanguageVocabulary(
        name="ruby",
        block_tags=("ruby", "rb"),
        keywords=("ruby", "bundler", "rubygems"),
        extensions=(".rb", ".gemspec"),
        frameworks=("Rails", "Ruby on Rails", "Sinatra"),
        manifests=("gemfile", "gemfile.lock", "rakefile"),
        heading_words=("ruby", "gem", "rails"),
    ),
    LanguageVocabulary(
        name="cpp",
        block_tags=("cpp", "c++", "cc", "cxx", "hpp"),
        keywords=("c++", "cmake"),
        extensions=(".cpp", ".hpp", ".cc", ".cxx"),
        frameworks=("Boost", "Qt"),
        manifests=("cmakelists.txt", "conanfile.txt", "vcpkg.json"),
        heading_words=("c++", "cmake"),
    ),
    LanguageVocabulary(
        name="c",
        block_tags=("c", "h"),
        keywords=(),
        extensions=(".c", ".h"),
    ),
    LanguageVocabulary(
        name="swift",
        block_tags=("swift",),
        keywords=("swift", "swiftpm", "cocoapods"),
        extensions=(".swift",),
        frameworks=("SwiftUI", "Vapor"),
        manifests=("package.swift", "podfile"),
        heading_words=("swift",),
    ),
)

LANGUAGE_BY_NAME: dict[str, LanguageVocabulary] = {v.name: v for v in LANGUAGES}

TAG_TO_LANGUAGE: dict[str, str] = {
    tag: vocab.name for vocab in LANGUAGES for tag in vocab.block_tags
}


def word_pattern(term: str) -> str:
    """Regex for a term delimited by non-word characters (``c#``, ``.net`` safe)."""
    return rf"(?<![\w.]){re.escape(term)}(?![\w#+])"


def compile_terms(
    terms: tuple[str, ...], case_sensitive: bool = False
) -> re.Pattern[str] | None:
    """Alternation of whole-word terms, longest first."""
    if not terms:
        return None
    ordered = sorted(set(terms), key=lambda t: (-len(t), t))
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile("|".join(word_pattern(t) for t in ordered), flags)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

# Leading tokens that make a line look like a shell command.
COMMAND_PREFIXES: tuple[str, ...] = (
    "npm", "npx", "yarn", "pnpm", "bun", "deno", "node",
    "pip", "pip3", "pipx", "python", "python3", "py", "poetry", "pipenv", "conda",
    "uv", "tox", "pytest", "nox",
    "cargo", "rustc", "rustup",
    "go",
    "mvn", "./mvnw", "gradle", "./gradlew", "java", "javac",
    "dotnet", "nuget",
    "bundle", "gem", "rake", "ruby", "rails", "rspec",
    "composer", "php", "phpunit",
    "make", "cmake", "gcc", "g++", "clang", "clang++", "ctest",
    "swift",
    "docker", "docker-compose", "podman", "kubectl", "helm",
    "jest", "mocha", "vitest", "jasmine", "karma", "cypress", "playwright",
    "webpack", "vite", "rollup", "parcel", "tsc", "babel", "eslint", "prettier",
    "git", "cd", "curl", "wget", "mkdir", "cp", "mv", "rm", "chmod", "chown",
    "export", "source", "sudo", "brew", "apt", "apt-get",
)

# Ordered (category, pattern) table; first match wins.
COMMAND_PATTERNS: tuple[tuple[CommandCategory, re.Pattern[str]], ...] = tuple(
    (category, re.compile(pattern, re.IGNORECASE))
    for category, pattern in (
        # infrastructure and shell housekeeping
        (CommandCategory.OTHER, r"^(docker|docker-compose|podman|kubectl|helm)\b"),
        (
            CommandCategory.OTHER,
            r"^(git|cd|curl|wget|mkdir|cp|mv|rm|chmod|chown|export|source|echo|cat|ls)\b",
        ),
        # build
        (CommandCategory.BUILD, r"^(npm|pnpm)\s+run\s+(build|compile|dist)\b"),
        (CommandCategory.BUILD, r"^yarn\s+(run\s+)?(build|compile|dist)\b"),
        (CommandCategory.BUILD, r"^cargo\s+build\b"),
        (CommandCategory.BUILD, r"^go\s+(build|install)\b"),
        (CommandCategory.BUILD, r"^(mvn|\./mvnw)\s+(compile|package|install|clean\s+install)\b"),
        (CommandCategory.BUILD, r"^(gradle|\./gradlew)\s+(build|assemble)\b"),
        (CommandCategory.BUILD, r"^make(\s+(build|all|compile))?\s*$"),
        (CommandCategory.BUILD, r"^cmake\b"),
        (
            CommandCategory.BUILD,
            r"^python3?\s+(setup\.py\s+(build|sdist|bdist_wheel)|-m\s+build)\b",
        ),
        (
            CommandCategory.BUILD,
            r"^(dotnet\s+(build|publish)|gem\s+build|swift\s+build|tsc|webpack"
            r"|vite\s+build|rollup|parcel\s+build)\b",
        ),
        # test
        (CommandCategory.TEST, r"^(npm|pnpm)\s+(run\s+)?(test|spec)\b"),
        (CommandCategory.TEST, r"^yarn\s+(run\s+)?test\b"),
        (CommandCategory.TEST, r"^cargo\s+test\b"),
        (CommandCategory.TEST, r"^go\s+test\b"),
        (CommandCategory.TEST, r"^(mvn|\./mvnw)\s+(test|verify)\b"),
        (CommandCategory.TEST, r"^(gradle|\./gradlew)\s+test\b"),
        (CommandCategory.TEST, r"^make\s+(test|check)\b"),
        (CommandCategory.TEST, r"^(python3?\s+-m\s+(pytest|unittest)|pytest|tox|nox)\b"),
        (CommandCategory.TEST, r"^(dotnet\s+test|swift\s+test|ctest)\b"),
        (CommandCategory.TEST, r"^(bundle\s+exec\s+(rspec|rake\s+test)|rspec|rake\s+test)\b"),
        (CommandCategory.TEST, r"^(phpunit|vendor/bin/phpunit|composer\s+test)\b"),
        (
            CommandCategory.TEST,
            r"^(npx\s+)?(jest|mocha|vitest|jasmine|karma|cypress\s+run|playwright\s+test)\b",
        ),
        # run
        (CommandCategory.RUN, r"^(npm|pnpm)\s+(start|run\s+(start|dev|serve))\b"),
        (CommandCategory.RUN, r"^yarn\s+(run\s+)?(start|dev|serve)\b"),
        (CommandCategory.RUN, r"^cargo\s+run\b"),
        (CommandCategory.RUN, r"^go\s+run\b"),
        (CommandCategory.RUN, r"^python3?\s+(manage\.py\s+runserver|[\w./-]+\.py|-m\s+\w+)"),
        (CommandCategory.RUN, r"^(java\s+-jar|dotnet\s+run|swift\s+run)\b"),
        (CommandCategory.RUN, r"^(ruby\s+[\w./-]+\.rb|(bundle\s+exec\s+)?rails\s+(server|s)\b)"),
        (CommandCategory.RUN, r"^php\s+(-S\b|[\w./-]+\.php)"),
        (CommandCategory.RUN, r"^node\s+[\w./-]+"),
        (CommandCategory.RUN, r"^(flask\s+run|uvicorn|gunicorn)\b"),
        # install
        (CommandCategory.INSTALL, r"^(npm|pnpm)\s+(install|i|ci|add)\b"),
        (CommandCategory.INSTALL, r"^yarn(\s+(install|add)\b|\s*$)"),
        (CommandCategory.INSTALL, r"^(pip3?|pipx|python3?\s+-m\s+pip|uv\s+pip)\s+install\b"),
        (
            CommandCategory.INSTALL,
            r"^(poetry|pipenv)\s+install\b|^conda\s+(install|env\s+create)\b",
        ),
        (CommandCategory.INSTALL, r"^cargo\s+(install|add|fetch)\b"),
        (CommandCategory.INSTALL, r"^go\s+(get|mod\s+(download|tidy))\b"),
        (
            CommandCategory.INSTALL,
            r"^(mvn|\./mvnw)\s+dependency:resolve\b|^(gradle|\./gradlew)\s+dependencies\b",
        ),
        (CommandCategory.INSTALL, r"^composer\s+(install|require|update)\b"),
        (CommandCategory.INSTALL, r"^(bundle\s+install|bundle\s*$|gem\s+install)\b"),
        (CommandCategory.INSTALL, r"^dotnet\s+(restore|add\s+package)\b"),
        (CommandCategory.INSTALL, r"^(brew|apt|apt-get)\s+install\b"),
    )
)

# Token-level keyword fallback, checked in this order.
COMMAND_KEYWORDS: tuple[tuple[CommandCategory, frozenset[str]], ...] = (
    (
        CommandCategory.BUILD,
        frozenset({"build", "compile", "dist", "assemble", "package", "bundle"}),
    ),
    (CommandCategory.TEST, frozenset({"test", "tests", "spec", "check", "coverage"})),
    (CommandCategory.RUN, frozenset({"start", "serve", "server", "dev", "watch"})),
    (
        CommandCategory.INSTALL,
        frozenset({"install", "add", "get", "restore", "download", "setup", "bootstrap"}),
    ),
)

# Section heading vocabulary, checked in this order.
SECTION_VOCABULARY: tuple[tuple[CommandCategory, tuple[str, ...]], ...] = (
    (
        CommandCategory.INSTALL,
        (
            "install",
            "installation",
            "installing",
            "setup",
            "set up",
            "getting started",
            "prerequisites",
            "requirements",
            "dependencies",
        ),
    ),
    (CommandCategory.BUILD, ("build", "building", "compile", "compiling", "compilation")),
    (CommandCategory.TEST, ("test", "tests", "testing", "running tests")),
    (
        CommandCategory.RUN,
        (
            "usage",
            "run",
            "running",
            "start",
            "quick start",
            "quickstart",
            "serve",
            "example",
            "examples",
        ),
    ),
)

# (pattern on the command, language) pairs for language inference.
COMMAND_LANGUAGE: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), language)
    for pattern, language in (
        (
            r"^(npm|npx|yarn|pnpm|bun|node|jest|mocha|vitest|jasmine|karma|webpack|vite"
            r"|rollup|parcel|babel|eslint)\b",
            "javascript",
        ),
        (r"^(tsc|deno)\b", "typescript"),
        (
            r"^(pip3?|pipx|python3?|py|poetry|pipenv|conda|pytest|tox|nox|uv|flask"
            r"|uvicorn|gunicorn)\b",
            "python",
        ),
        (r"^(cargo|rustc|rustup)\b", "rust"),
        (r"^go\b", "go"),
        (r"^(mvn|\./mvnw|gradle|\./gradlew|java|javac)\b", "java"),
        (r"^(dotnet|nuget)\b", "csharp"),
        (r"^(bundle|gem|rake|ruby|rails|rspec)\b", "ruby"),
        (r"^(composer|php|phpunit|vendor/bin/phpunit)\b", "php"),
        (r"^(cmake|g\+\+|clang\+\+|ctest)(?=\s|$)", "cpp"),
        (r"^(gcc|clang)\b", "c"),
        (r"^swift\b", "swift"),
        (r"^(docker|docker-compose|podman|kubectl|helm)\b", "docker"),
    )
)

# Languages a command may be tagged with that are not project languages.
NON_PROJECT_LANGUAGES: frozenset[str] = frozenset({"shell", "docker"})


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

# Manifest file name (lowercase) -> ecosystem.
MANIFEST_ECOSYSTEMS: dict[str, str] = {
    "package.json": "npm",
    "requirements.txt": "pypi",
    "requirements-dev.txt": "pypi",
    "setup.py": "pypi",
    "setup.cfg": "pypi",
    "pyproject.toml": "pypi",
    "pipfile": "pypi",
    "cargo.toml": "cargo",
    "go.mod": "go",
    "pom.xml": "maven",
    "build.gradle": "gradle",
    "build.gradle.kts": "gradle",
    "composer.json": "composer",
    "gemfile": "rubygems",
    "packages.config": "nuget",
}

# Canonical spelling of manifest names for output.
MANIFEST_DISPLAY: dict[str, str] = {
    "cargo.toml": "Cargo.toml",
    "gemfile": "Gemfile",
    "pipfile": "Pipfile",
}

ECOSYSTEM_LANGUAGE: dict[str, str] = {
    "npm": "javascript",
    "pypi": "python",
    "cargo": "rust",
    "go": "go",
    "maven": "java",
    "gradle": "java",
    "composer": "php",
    "rubygems": "ruby",
    "nuget": "csharp",
}

# Words that look like package names in prose but never are.
PACKAGE_STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "with", "to", "of", "in", "on", "for",
        "is", "are", "it", "this", "that", "these", "those", "your", "our",
        "dependencies", "dependency", "packages", "package", "requirements",
        "following", "latest", "all", "any", "some", "other", "following:",
        "install", "run", "using", "via", "from", "by", "as",
    }
)


# ---------------------------------------------------------------------------
# Testing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSignature:
    """Test framework or coverage tool and how it shows up."""

    name: str
    language: str
    command: re.Pattern[str] | None
    prose: re.Pattern[str]
    packages: tuple[str, ...] = ()


def _tool(
    name: str,
    language: str,
    command: str | None,
    prose: str | None = None,
    packages: tuple[str, ...] = (),
) -> ToolSignature:
    return ToolSignature(
        name=name,
        language=language,
        command=re.compile(command, re.IGNORECASE) if command else None,
        prose=re.compile(prose or word_pattern(name), re.IGNORECASE),
        packages=packages or (name,),
    )


TEST_FRAMEWORKS: tuple[ToolSignature, ...] = (
    _tool("jest", "javascript", r"(^|\s)(npx\s+)?jest\b"),
    _tool("mocha", "javascript", r"(^|\s)(npx\s+)?mocha\b"),
    _tool("vitest", "javascript", r"(^|\s)(npx\s+)?vitest\b"),
    _tool("jasmine", "javascript", r"(^|\s)(npx\s+)?jasmine\b"),
    _tool("karma", "javascript", r"(^|\s)(npx\s+)?karma\s+start\b"),
    _tool("cypress", "javascript", r"(^|\s)(npx\s+)?cypress\s+(run|open)\b"),
    _tool(
        "playwright",
        "javascript",
        r"(^|\s)(npx\s+)?playwright\s+test\b",
        packages=("playwright", "@playwright/test"),
    ),
    _tool("pytest", "python", r"(^|\s)(python3?\s+-m\s+)?pytest\b"),
    _tool("unittest", "python", r"python3?\s+-m\s+unittest\b"),
    _tool("nose2", "python", r"(^|\s)nose2\b"),
    _tool("tox", "python", r"^tox\b"),
    _tool("rspec", "ruby", r"(^|\s)(bundle\s+exec\s+)?rspec\b", packages=("rspec", "rspec-rails")),
    _tool("minitest", "ruby", r"rake\s+test\b", prose=word_pattern("minitest")),
    _tool("junit", "java", r"(mvn|gradle|\./gradlew)\s+test\b", prose=word_pattern("junit")),
    _tool("testng", "java", None, prose=word_pattern("testng")),
    _tool("go test", "go", r"^go\s+test\b", prose=r"(?<![\w.])go\s+test\b"),
    _tool("cargo test", "rust", r"^cargo\s+test\b", prose=r"(?<![\w.])cargo\s+test\b"),
    _tool("phpunit", "php", r"(^|\s|/)phpunit\b", packages=("phpunit/phpunit", "phpunit")),
    _tool("xunit", "csharp", None, prose=r"(?<![\w.])xunit(?:\.net)?\b"),
    _tool("nunit", "csharp", None, prose=word_pattern("nunit")),
    _tool("xctest", "swift", r"^swift\s+test\b", prose=word_pattern("xctest")),
)

COVERAGE_TOOLS: tuple[ToolSignature, ...] = (
    _tool("istanbul", "javascript", r"(^|\s)istanbul\b"),
    _tool("nyc", "javascript", r"(^|\s)(npx\s+)?nyc\b"),
    _tool("c8", "javascript", r"(^|\s)(npx\s+)?c8\b"),
    _tool(
        "coverage.py",
        "python",
        r"(^|\s)coverage\s+(run|report|html)\b",
        prose=r"(?<![\w.])coverage\.py\b",
        packages=("coverage",),
    ),
    _tool("pytest-cov", "python", r"pytest\b.*--cov\b", packages=("pytest-cov",)),
    _tool("codecov", "", r"(^|\s)codecov\b"),
    _tool("coveralls", "", r"(^|\s)coveralls\b"),
    _tool("jacoco", "java", r"jacoco", prose=word_pattern("jacoco")),
    _tool("simplecov", "ruby", None, prose=word_pattern("simplecov")),
    _tool("tarpaulin", "rust", r"cargo\s+tarpaulin\b", packages=("cargo-tarpaulin",)),
    _tool("gcov", "cpp", r"(^|\s)(gcov|lcov)\b", prose=r"(?<![\w.])(?:gcov|lcov)\b"),
)

# Test configuration file name (lowercase) -> tool it configures.
TEST_CONFIG_FILES: dict[str, str] = {
    "jest.config.js": "jest",
    "jest.config.ts": "jest",
    "jest.config.json": "jest",
    "vitest.config.ts": "vitest",
    "vitest.config.js": "vitest",
    ".mocharc.json": "mocha",
    ".mocharc.yml": "mocha",
    ".mocharc.js": "mocha",
    "karma.conf.js": "karma",
    "cypress.json": "cypress",
    "cypress.config.js": "cypress",
    "cypress.config.ts": "cypress",
    "playwright.config.ts": "playwright",
    "playwright.config.js": "playwright",
    "jasmine.json": "jasmine",
    "pytest.ini": "pytest",
    "conftest.py": "pytest",
    "tox.ini": "tox",
    ".rspec": "rspec",
    "phpunit.xml": "phpunit",
    "phpunit.xml.dist": "phpunit",
    ".coveragerc": "coverage.py",
    ".nycrc": "nyc",
    "codecov.yml": "codecov",
}


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

# (pattern, canonical SPDX-ish id), most specific first.
LICENSES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), name)
    for pattern, name in (
        (r"\bAGPL[- ]?v?3(\.0)?\b|\bGNU Affero\b", "AGPL-3.0"),
        (r"\bLGPL[- ]?v?3(\.0)?\b|\bGNU Lesser General Public License v?3\b", "LGPL-3.0"),
        (r"\bLGPL[- ]?v?2\.1\b", "LGPL-2.1"),
        (r"\bGPL[- ]?v?3(\.0)?\b|\bGNU General Public License v?3\b|\bGNU GPL ?v?3\b", "GPL-3.0"),
        (r"\bGPL[- ]?v?2(\.0)?\b|\bGNU General Public License v?2\b", "GPL-2.0"),
        (r"\bApache(?: License)?[- ,]*(?:Version |v)?2(?:\.0)?\b|\bApache[- ]2\b", "Apache-2.0"),
        (r"\bBSD[- ]3[- ]Clause\b|\b3-clause BSD\b", "BSD-3-Clause"),
        (r"\bBSD[- ]2[- ]Clause\b|\b2-clause BSD\b", "BSD-2-Clause"),
        (r"\bMPL[- ]?2(\.0)?\b|\bMozilla Public License(?: 2\.0)?\b", "MPL-2.0"),
        (r"\bMIT\b", "MIT"),
        (r"\bISC\b", "ISC"),
        (r"\bUnlicense\b", "Unlicense"),
        (r"\bCC0\b", "CC0-1.0"),
    )
)

REPOSITORY_URL = re.compile(
    r"https?://(?:www\.)?(?:github\.com|gitlab\.com|bitbucket\.org)/"
    r"([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+?)(?:\.git)?(?=[/)\s\"'#?>\]]|$)"
)

# Badge service host -> badge kind.
BADGE_SERVICES: tuple[tuple[str, str], ...] = (
    ("shields.io", "shields"),
    ("travis-ci", "build"),
    ("circleci.com", "build"),
    ("github.com", "workflow"),
    ("codecov.io", "coverage"),
    ("coveralls.io", "coverage"),
    ("badge.fury.io", "version"),
    ("pypi", "version"),
    ("npmjs", "version"),
    ("readthedocs", "docs"),
    ("appveyor", "build"),
    ("img.shields", "shields"),
)

ENVIRONMENT_SECTION = re.compile(
    r"\b(environment|env(?:ironment)? variables?|configuration|config|\.env|settings)\b",
    re.IGNORECASE,
)
