from pathlib import Path
import sys

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env")
sys.path.insert(0, str(ROOT))

from packages.backend_client import BackendClient, BackendClientError, Credentials
from services.alerts import extract_items, load_config


def main() -> int:
    config = load_config()
    if not config.backend.token:
        print("REVLOGIX_API_TOKEN is not set")
        return 1
    client = BackendClient(
        config.backend.url,
        Credentials(config.backend.token),
        timeout=config.backend.timeout_seconds,
    )
    print(f"Backend: {client.url}")
    failures = 0
    try:
        for kind, path in config.backend.endpoints.items():
            try:
                payload = client.get_json(path)
            except BackendClientError as exc:
                failures += 1
                status = exc.status_code if exc.status_code is not None else "unreachable"
                print(f"{kind.collection}: {path} -> error ({status})")
                continue
            print(f"{kind.collection}: {path} -> {len(extract_items(payload))} rows")
    finally:
        client.close()
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
