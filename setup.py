from setuptools import setup, find_packages

setup(
    name="smartcalendar",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "psycopg2-binary",
        "python-dotenv",
        "pydantic",
        "pydantic-settings>=2.7",
        "celery",
        "redis",
        "prometheus-client",
        "prometheus-fastapi-instrumentator",
        "httpx",
        "tzdata",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
