from setuptools import find_packages, setup

setup(
    name="petpal-chat-service",
    version="0.1.0",
    description="Adoption chat service and client for the PetPal platform",
    author="PetPal Team",
    author_email="team@petpal.dev",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]>=0.29.0",
        "pydantic>=2.5.0,<3.0.0",
        "pydantic-settings>=2.2.0",
        "sqlalchemy[asyncio]>=2.0.31,<3.0.0",
        "psycopg[binary]>=3.1.0",
        "alembic>=1.13.0",
        "python-dotenv>=1.0.0",
        "python-jose[cryptography]>=3.3.0",
        "slowapi>=0.1.9",
        "httpx>=0.27.0",
        "websockets>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "aiosqlite>=0.20.0",
        ],
    },
)
