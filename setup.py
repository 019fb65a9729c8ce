"""
modelgate - Provider/Model Registry for AI coding agents

This setup.py file is provided for pip install compatibility.
"""

from setuptools import find_packages, setup

if __name__ == "__main__":
    setup(
        name="modelgate",
        version="0.1.0",
        description="Resolve, merge and filter AI model providers and lazily build their client adapters.",
        package_dir={"": "src"},
        packages=find_packages("src"),
        python_requires=">=3.11",
        install_requires=[
            "pydantic>=2.0",
            "pyyaml>=6.0",
            "httpx>=0.27",
            "tenacity>=8.2",
        ],
        extras_require={
            "test": [
                "pytest>=7.4",
                "pytest-asyncio>=0.23",
            ],
        },
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "Programming Language :: Python :: 3",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.12",
            "Topic :: Scientific/Engineering :: Artificial Intelligence",
        ],
    )
