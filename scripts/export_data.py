#!/usr/bin/env python3
"""
Export a learner's progress, lesson history and word bank to JSON
"""

import json
import sqlite3
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from gemitalk.core.database.database_manager import DatabaseManager  # noqa: E402


def export_user_data(db_path: str, user_id: str, output_path: str) -> bool:
    """Export one user's data to a JSON file"""
    try:
        print(f"📖 Exporting data for user {user_id} from {db_path}")

        db_manager = DatabaseManager(db_path)
        db_manager.init_database()
        data = db_manager.export_user_data(user_id)

        if data["progress"] is None:
            print(f"  ⚠️  No profile found for user {user_id}")

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        print(f"✅ Successfully exported data to {output_path}")
        print("📊 Export summary:")
        print(f"   • Completed lessons: {len(data['completed_lessons'])}")
        print(f"   • Word bank items: {len(data['word_bank'])}")
        print(f"   • Daily goals: {len(data['daily_goals'])}")
        return True

    except (OSError, ValueError, sqlite3.Error) as e:
        print(f"❌ Export failed: {e}")
        return False


def main():
    """Main export function"""
    if len(sys.argv) != 4:
        print("Usage: python export_data.py <database_path> <user_id> <output_json_path>")
        print("Example: python export_data.py data/gemitalk.db learner-1 data/learner-1.json")
        sys.exit(1)

    db_path, user_id, output_path = sys.argv[1:4]

    if not Path(db_path).exists():
        print(f"❌ Database file not found: {db_path}")
        sys.exit(1)

    if export_user_data(db_path, user_id, output_path):
        print("🎉 Export completed successfully!")
        sys.exit(0)
    else:
        print("💥 Export failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
