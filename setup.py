from setuptools import setup, find_packages

setup(
    name="foundation-core",
    version="0.1.0",
    packages=find_packages(exclude=["foundation.tests", "foundation.tests.*"]),
    include_package_data=True,
    description="Application context layer: lazy collaborators and flash messages for web requests",
    author="Foundation Team",
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.104.1",
        "uvicorn>=0.23.2",
        "pydantic>=2.4.2",
        "pydantic-settings>=2.0.3",
        "python-dotenv>=1.0.0",
        "sqlalchemy>=2.0",
        "passlib>=1.7.4",
        "jinja2>=3.1",
        "itsdangerous>=2.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.25",
        ],
    },
)
