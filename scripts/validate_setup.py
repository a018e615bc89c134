"""Validate that the service is configured and can reach the order-service."""

import asyncio
import sys
from pathlib import Path

import httpx

from order_lifecycle.config import get_settings


async def check_env_file() -> bool:
    """Check if .env file exists and has required variables."""
    print("Checking environment configuration...")

    env_path = Path(".env")
    if not env_path.exists():
        print("  ❌ .env file not found!")
        print("  → Run: cp .env.example .env")
        return False

    with open(env_path) as f:
        env_content = f.read()

    required_vars = ["ORDER_SERVICE_URL", "ORDER_SERVICE_TOKEN"]
    missing_vars = [var for var in required_vars if var not in env_content]

    if missing_vars:
        print(f"  ❌ Missing variables: {', '.join(missing_vars)}")
        return False

    if not get_settings().order_service_token:
        print("  ⚠️  ORDER_SERVICE_TOKEN is empty")
        print("  → Set the admin API token in .env")
        return False

    print("  ✓ Environment file configured")
    return True


async def check_project_structure() -> bool:
    """Check if all required files exist."""
    print("\nChecking project structure...")

    required_paths = [
        "order_lifecycle/lifecycle/status_model.py",
        "order_lifecycle/lifecycle/transitions.py",
        "order_lifecycle/lifecycle/progress.py",
        "order_lifecycle/services/order_client.py",
        "order_lifecycle/services/lifecycle_service.py",
        "order_lifecycle/api/routes.py",
        "order_lifecycle/main.py",
        "pyproject.toml",
    ]

    missing = [path for path in required_paths if not Path(path).exists()]

    if missing:
        print("  ❌ Missing files:")
        for path in missing:
            print(f"     - {path}")
        return False

    print("  ✓ All required files present")
    return True


async def check_python_version() -> bool:
    """Check if Python version is 3.11+."""
    print("\nChecking Python version...")

    version = sys.version_info
    if version.major < 3 or (version.major == 3 and version.minor < 11):
        print(f"  ❌ Python {version.major}.{version.minor} detected")
        print("  → Python 3.11+ required")
        return False

    print(f"  ✓ Python {version.major}.{version.minor} detected")
    return True


async def check_order_service() -> bool:
    """Check that the order-service answers with the configured token."""
    print("\nChecking order-service...")

    settings = get_settings()
    headers = {}
    if settings.order_service_token:
        headers["Authorization"] = f"Bearer {settings.order_service_token}"

    try:
        async with httpx.AsyncClient(headers=headers, timeout=5.0) as client:
            response = await client.get(
                f"{settings.order_service_url}/orders", params={"limit": 1}
            )
    except httpx.HTTPError as e:
        print(f"  ❌ {settings.order_service_url} not reachable: {e}")
        print("  → Check ORDER_SERVICE_URL and that the order-service is running")
        return False

    if response.status_code == 401:
        print("  ❌ Order-service rejected the token")
        print("  → Check ORDER_SERVICE_TOKEN")
        return False

    if response.status_code != 200:
        print(f"  ⚠️  Order-service returned status {response.status_code}")
        return False

    print("  ✓ Order-service is responding")
    return True


async def main() -> None:
    """Run all validation checks."""
    print("\n" + "=" * 60)
    print("  Order Lifecycle Service - Setup Validation")
    print("=" * 60 + "\n")

    checks = [
        ("Python Version", check_python_version),
        ("Environment", check_env_file),
        ("Project Structure", check_project_structure),
        ("Order Service", check_order_service),
    ]

    results = []
    for name, check in checks:
        result = await check()
        results.append((name, result))

    print("\n" + "=" * 60)
    print("  Validation Summary")
    print("=" * 60)

    all_passed = True
    for name, passed in results:
        status = "✓" if passed else "❌"
        print(f"  {status} {name}")
        if not passed:
            all_passed = False

    print("=" * 60)

    if all_passed:
        print("\n✅ All checks passed! Service is ready.")
        print("\nNext steps:")
        print("  1. Start the API: python -m order_lifecycle.main")
        print("  2. Test API: curl http://localhost:8080/health")
        print("  3. View docs: http://localhost:8080/docs")
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        sys.exit(1)

    print()


if __name__ == "__main__":
    asyncio.run(main())
