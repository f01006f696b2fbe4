"""Initialize database with sample data."""
import sys
from sqlalchemy.orm import Session
from splitlab.config import get_settings
from splitlab.api.embed import render_embed_tags
from splitlab.database import SessionLocal, engine, Base
from splitlab import models  # noqa: F401
from splitlab.seed import seed_sample_experiment
from splitlab.services.errors import SplitLabError


def init_database():
    """Create tables and the sample experiment."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()

    try:
        experiment = seed_sample_experiment(db)
        if not experiment:
            print("✓ Database already initialized")
            return

        print(f"✓ Created experiment: {experiment.name} ({experiment.id})")
        for variation in experiment.variations:
            print(f"  - {variation.type.value}: weight {variation.weight} ({variation.id})")

        print("\n" + "="*50)
        print("✓ Database initialized successfully!")
        print("="*50)
        print("\nEmbed it on a page with:")
        print(render_embed_tags(str(experiment.id), get_settings().public_api_url))
        print("\n" + "="*50)

    except SplitLabError as e:
        print(f"✗ Error initializing database: {e.message}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    init_database()
