"""Runtime configuration read from the environment."""

import os

PORT = int(os.environ.get("PORT", "8443"))
CERT_FILE = os.environ.get("CERT_FILE", "/tls/tls.crt")
KEY_FILE = os.environ.get("KEY_FILE", "/tls/tls.key")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Where the cluster keeps the git server state
STATE_NAMESPACE = os.environ.get("STATE_NAMESPACE", "zarf")
STATE_SECRET_NAME = os.environ.get("STATE_SECRET_NAME", "zarf-state")
STATE_SECRET_KEY = os.environ.get("STATE_SECRET_KEY", "state")

# Static override for running outside a cluster
GIT_SERVER_ADDRESS = os.environ.get("GIT_SERVER_ADDRESS", "")
GIT_PUSH_USERNAME = os.environ.get("GIT_PUSH_USERNAME", "zarf-git-user")
