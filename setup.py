from setuptools import setup, find_packages

setup(
    name="glycorisk",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "alembic",
        "psycopg2-binary",
        "requests",
        "pydantic[email]",
        "pydantic-settings",
        "prometheus-client",
        "prometheus-fastapi-instrumentator",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
