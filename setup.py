from setuptools import setup, find_packages

setup(
    name="inlein-client",
    version="0.2.0",
    description="Command line client that starts and talks to the inlein daemon",
    license="EPL-1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "inlein=inlein.main:inlein",
        ],
    },
    python_requires=">=3.10",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
