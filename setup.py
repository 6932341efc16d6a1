from setuptools import find_packages, setup

setup(
    name="neon-sdk",
    version="0.1.0",
    description="A client for the Neon serverless Postgres API",
    packages=find_packages(include=["neon_sdk", "neon_sdk.*"]),
    package_data={"neon_sdk": ["mock_responses.yaml"]},
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24",
        "pydantic>=2.5",
        "pyyaml>=5.4.1",
    ],
    extras_require={
        "dev": [
            "flake8",
            "black",
            "pre-commit",
            "pre-commit-hooks",
            "isort",
            "pytest",
            "pytest-mock",
        ],
        "test": ["flake8", "pytest", "pytest-mock"],
    },
)
