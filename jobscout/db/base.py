from sqlalchemy.orm import declarative_base

# Shared metadata for users, prompts, generated_content and user_subscriptions.
# Alembic's env.py and init_db() import jobscout.db.models to register the tables.
Base = declarative_base()
