from pathlib import Path
from setuptools import setup, find_packages


def read_readme() -> str:
    readme_path = Path(__file__).resolve().parent / "README.md"
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""


setup(
    name="cryptopipe",
    version="1.0.0",
    packages=find_packages(include=["cryptopipe", "cryptopipe.*"]),
    package_data={"cryptopipe": ["usage/*.txt"]},
    include_package_data=True,
    install_requires=[
        "cryptography>=41.0.0",
        "numpy>=1.24.0",
        "pqcrypto>=0.3.4,<1.0",
    ],
    entry_points={
        "console_scripts": ["cryptopipe=cryptopipe.cli:main"],
    },
    python_requires=">=3.10",
    description="Chunked, multi-threaded stream cipher pipeline for stdin/stdout",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
)
