"""Reading credentials from Docker secrets or environment."""

import os


def read_secret(secret_name: str, env_name: str, default: str | None = None) -> str | None:
    """
    Read a credential from /run/secrets/<secret_name>, falling back to env.

    Args:
        secret_name: File name under /run/secrets
        env_name: Environment variable to use when the secret file is absent
        default: Value when neither is set

    Returns:
        Secret value or default
    """
    secret_path = f"/run/secrets/{secret_name}"
    try:
        with open(secret_path) as f:
            return f.read().strip()
    except FileNotFoundError:
        return os.getenv(env_name, default)
