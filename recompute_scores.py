"""
Script to bring submission totals back in line with their answer scores
Usage: python recompute_scores.py <assignment|exam> <id>
Example: python recompute_scores.py exam 3
"""
import os
import sys

# Add app to path
sys.path.insert(0, os.path.dirname(__file__))

from coursehub import create_app, db
from coursehub.models.submission import Submission
from coursehub.services.scoring_service import ScoringService, SOURCE_TYPES


def recompute_scores(source_type, source_id):
    """Recompute total_score of every submission of an assignment or exam"""
    app = create_app()

    with app.app_context():
        submissions = Submission.query.filter_by(source_type=source_type, source_id=source_id).all()

        if not submissions:
            print(f"No submissions found for {source_type} {source_id}")
            return False

        changed = 0
        for submission in submissions:
            before = submission.total_score or 0
            after = ScoringService.recompute_total(submission)
            if abs(before - after) > 1e-9:
                changed += 1
                print(f"   Submission {submission.id}: {before:g} -> {after:g}")

        db.session.commit()
        print(f"\nChecked {len(submissions)} submission(s), corrected {changed}")
        return True


if __name__ == '__main__':
    if len(sys.argv) != 3:
        print("Usage: python recompute_scores.py <assignment|exam> <id>")
        print("Example: python recompute_scores.py exam 3")
        sys.exit(1)

    source_type = sys.argv[1]
    if source_type not in SOURCE_TYPES:
        print(f"Error: source type must be one of {', '.join(SOURCE_TYPES)}")
        sys.exit(1)

    try:
        source_id = int(sys.argv[2])
    except ValueError:
        print("Error: the id must be an integer")
        sys.exit(1)

    success = recompute_scores(source_type, source_id)
    sys.exit(0 if success else 1)
