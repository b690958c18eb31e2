"""
Setup script for sprachcoach.

sprachcoach is the challenge engine of a German language coaching bot. It
serves three roles:

1. Feedback Memory - Stores coach feedback and the phrases extracted from it
2. Review Selection - Picks the most important, least practiced phrases
3. Automated Challenges - Sends each opted-in learner a few exercises per week

The 'coach' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="sprachcoach",
    version="1.0.0",
    description="Automated practice challenges and phrase review for language learners",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Sprachcoach",
    packages=find_packages(include=["sprachcoach", "sprachcoach.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "coach=sprachcoach.cli.main:run_cli",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="language-learning german telegram spaced-repetition scheduler",
)
