from setuptools import setup, find_packages

setup(
    name="hazardroute",
    version="0.1.0",
    description="Timing-aware route planning through repeating area hazards",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "hazardroute-demo=hazardroute.__main__:main",
        ],
    },
    python_requires=">=3.8",
    zip_safe=False,
)
