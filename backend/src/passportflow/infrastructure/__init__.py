"""Infrastructure adapters: SQLAlchemy repositories and S3 blob storage"""
