"""
Rebuild every read model of one account by replaying its events

Usage:
    python run_projector.py <account_id>
"""
import sys

from seiton.application.profile import load_profile
from seiton.config import get_settings
from seiton.infrastructure.db.session import Backend
from seiton.readmodels.registry import build_orchestrator

account_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1

backend = Backend(get_settings())
backend.start()
db = backend.session()

try:
    print(f"Rebuilding read models for account_id={account_id}...")
    results = build_orchestrator(db).rebuild_all(account_id)
    for name, count in results.items():
        print(f"  {name}: {count} events")

    profile = load_profile(db, account_id)
    if profile:
        print(f"Profile: {profile.total_points} points, level {profile.level}, "
              f"{profile.completed_tasks} tasks, streak {profile.current_streak}")

except Exception as e:
    print(f"ERROR: {e}")
    import traceback
    traceback.print_exc()

finally:
    db.close()
    backend.dispose()
