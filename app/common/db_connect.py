# Database connection for Aurora Serverless RDS and local PostgreSQL
import logging
import os
import boto3
import json
from sqlalchemy import create_engine
from sqlalchemy.engine.url import URL
from sqlalchemy.orm import Session, sessionmaker

STAGE = os.getenv("STAGE", "local").lower()
AWS_REGION = os.getenv("REGION", "us-east-1")

# Full URL override, e.g. sqlite:///chat_history.db for local experiments
DATABASE_URL = os.getenv("DATABASE_URL")

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_DB = os.getenv("POSTGRES_DB")
POSTGRES_PW = os.getenv("POSTGRES_PASSWORD", "")  # only used for local dev
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = int(os.getenv("POSTGRES_PORT", "5432"))
RDS_ENDPOINT = os.getenv("RDS_ENDPOINT")


def get_rds_master_password() -> str:
    """
    Retrieve Aurora Serverless master password from Secrets Manager.
    """
    secrets_client = boto3.client("secretsmanager", region_name=AWS_REGION)
    secret_arn = os.getenv("RDS_SECRET_ARN")
    if not secret_arn:
        raise RuntimeError("RDS_SECRET_ARN must be set for RDS connections")

    response = secrets_client.get_secret_value(SecretId=secret_arn)
    secret = json.loads(response["SecretString"])
    return secret["password"]


def make_base_url() -> str:
    """
    Build connection URL for Aurora Serverless RDS or local PostgreSQL.
    """
    if DATABASE_URL:
        return DATABASE_URL

    if STAGE == "local":
        host = POSTGRES_HOST
        password = POSTGRES_PW
    else:
        if not RDS_ENDPOINT:
            raise RuntimeError("RDS_ENDPOINT must be set")
        host = RDS_ENDPOINT
        password = ""

    url = URL.create(
        drivername="postgresql+psycopg2",
        username=POSTGRES_USER,
        password=password,
        host=host,
        port=POSTGRES_PORT,
        database=POSTGRES_DB,
    )
    return url.render_as_string(hide_password=False)


def make_connect_args() -> dict:
    """
    For local: use password from the URL.
    For dev/prod: use master password from Secrets Manager.
    """
    if DATABASE_URL:
        return {}
    if STAGE == "local":
        return {"sslmode": "disable"}
    password = get_rds_master_password()
    return {"password": password, "sslmode": "require"}


_engine = None


def get_engine():
    """Create the engine on first use so importing the app never opens a connection."""
    global _engine
    if _engine is None:
        _engine = create_engine(
            make_base_url(),
            connect_args=make_connect_args(),
            pool_pre_ping=True,
            future=True,
        )
    return _engine


SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def create_session() -> Session:
    return SessionLocal(bind=get_engine())


# set SQLAlchemy logs to only error
logging.basicConfig()
logging.getLogger("sqlalchemy").setLevel(logging.ERROR)
