"""Setup configuration for probench"""

from setuptools import setup, find_packages

setup(
    name="athlete-benchmark-engine",
    version="0.1.0",
    description=(
        "Professional-athlete percentile benchmarks for force-plate testing: "
        "reference range building and athlete comparison."
    ),
    author="Athlete Benchmark Engine Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "athlete-benchmarks=probench.main:main",
        ],
    },
)
