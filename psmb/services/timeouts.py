from __future__ import annotations

# pwsh / PSResourceGet operations (find, save, publish)
PWSH_TIMEOUT_SECONDS = 5 * 60.0

# gh release operations
GH_TIMEOUT_SECONDS = 60.0

# Registry and release-list lookups
LOOKUP_RETRY_ATTEMPTS = 5
LOOKUP_RETRY_DELAY_SECONDS = 10.0

# Dependency installs
INSTALL_RETRY_ATTEMPTS = 5
INSTALL_RETRY_DELAY_SECONDS = 10.0
