from setuptools import setup, find_packages
import os

install_requires = ["pydantic>=2"]

# Define optional dependencies for development and specific features
extras_require = {"dev": ["pytest"], "lsp": ["pygls>=1.0.0,<2"]}  # Language Server Protocol support

setup(
    name="fl-interpreter",
    version="1.0.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "fli = fli.cli:main",
        ],
    },
    include_package_data=True,
    package_data={},
    description="A tree-walking interpreter for the FL programming language.",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    python_requires=">=3.8",
)
