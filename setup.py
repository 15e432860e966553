from setuptools import setup, find_packages

setup(
    name="unmute-alarms",
    version="0.1.1",
    description="Unmute alarm scheduling daemon",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "apscheduler>=3.10.0,<4.0",
        "python-dateutil>=2.8.0",
        "python-dotenv>=1.0.0",
        "loguru>=0.7.0",
        "pyyaml>=6.0",
        "tzdata",
        "tzlocal>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "unmute=unmute.main:main",
        ],
    },
)
