#!/usr/bin/env python3
"""
Import a learner's exported JSON back into a GemiTalk database
"""

import json
import sqlite3
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from gemitalk.core.database.database_manager import DatabaseManager  # noqa: E402


def import_user_data(json_path: str, db_path: str) -> bool:
    """Load an export file and restore it into the database"""
    try:
        print(f"📖 Loading data from {json_path}")
        with open(json_path, encoding="utf-8") as f:
            data = json.load(f)

        print(f"🔗 Connecting to database {db_path}")
        db_manager = DatabaseManager(db_path)
        db_manager.init_database()
        print("  ✅ Database schema initialized")

        counts = db_manager.import_user_data(data)

        print(f"✅ Imported data for user {data['user_id']}")
        print("📊 Import summary:")
        print(f"   • Profile: {counts['progress']}")
        print(f"   • Completed lessons: {counts['completed_lessons']}")
        print(f"   • Word bank items: {counts['word_bank']}")
        print(f"   • Daily goals: {counts['daily_goals']}")
        return True

    except (OSError, KeyError, ValueError, sqlite3.Error) as e:
        print(f"❌ Import failed: {e}")
        return False


def main():
    """Main import function"""
    if len(sys.argv) != 3:
        print("Usage: python import_data.py <input_json_path> <database_path>")
        print("Example: python import_data.py data/learner-1.json data/gemitalk.db")
        sys.exit(1)

    json_path, db_path = sys.argv[1:3]

    if not Path(json_path).exists():
        print(f"❌ JSON file not found: {json_path}")
        sys.exit(1)

    if import_user_data(json_path, db_path):
        print("🎉 Import completed successfully!")
        sys.exit(0)
    else:
        print("💥 Import failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
