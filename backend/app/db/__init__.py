"""
Database module for StudentTrack

Contains database initialization and seed data.
"""
from app.db.seed_data import seed_supervisor, seed_sample_students, init_database

__all__ = ["seed_supervisor", "seed_sample_students", "init_database"]
