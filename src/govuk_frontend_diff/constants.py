"""Constants for govuk-frontend-diff."""

# Default location of the version-keyed reference bundle cache
DEFAULT_CACHE_DIR = ".cache/govuk-frontend"

# Tarball of the reference repository at a given commit-ish
DEFAULT_ARCHIVE_URL = "https://github.com/alphagov/govuk-frontend/archive/{version}.tar.gz"

# Layout of the reference repository (v3.0.0 onwards)
DEFAULT_COMPONENTS_DIR = "src/govuk/components"
DEFAULT_PAGE_TEMPLATE = "src/govuk/template.njk"
COMPONENT_TEMPLATE_NAME = "template.njk"

# Pseudo-component name for the page template scenarios
PAGE_TEMPLATE = "page-template"

# Timeouts (seconds)
DOWNLOAD_TIMEOUT = 120
RENDER_TIMEOUT = 60  # per candidate invocation
GRACEFUL_SHUTDOWN_TIMEOUT = 5.0

# Maximum number of candidate renders in flight
DEFAULT_CONCURRENCY = 8

# Context shown around each difference in the console report
CHARS_AROUND_DIFF = 80

CONFIG_FILENAME = "govuk-frontend-diff.toml"
