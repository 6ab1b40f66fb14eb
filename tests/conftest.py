"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports and points the
settings at an in-memory database before the application is imported.
"""

import os
import sys
from pathlib import Path

TEST_JWT_SECRET = "test-secret-for-nutricoach-tokens-0123456789"

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["SUPABASE_JWT_AUDIENCE"] = "authenticated"
os.environ["OPTIMIZATION_API_BASE_URL"] = "https://optimizer.test"

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
