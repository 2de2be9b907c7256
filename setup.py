from setuptools import setup, find_packages

setup(
    name="jsonui-testrunner",
    version="1.0.0",
    description="Declarative JSON UI test execution engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyyaml>=5.4",
        "jsonschema>=4.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.9",
    package_data={
        "jsonui_testrunner": ["schemas/*.json"],
    },
    entry_points={
        "console_scripts": [
            "jsonui-test=jsonui_testrunner.cli:main",
        ],
    },
)
