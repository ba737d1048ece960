"""Setup script for Bazar Buddy."""

from setuptools import setup, find_packages

setup(
    name="bazar-buddy",
    version="0.1.0",
    description="Household grocery lists with AI-assisted price estimates",
    author="AI2025",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"bazar_buddy.web": ["templates/*.html"]},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.109.0",
        "uvicorn[standard]>=0.27.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "sqlalchemy[asyncio]>=2.0.25",
        "aiosqlite>=0.19.0",
        "httpx>=0.26.0",
        "apscheduler>=3.10.0",
        "click>=8.1.0",
        "rich>=13.7.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0.0",
        "jinja2>=3.1.0",
        "python-multipart>=0.0.9",
        "reportlab>=4.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bazar-buddy=bazar_buddy.cli:main",
        ],
    },
)
