# setup.py
from setuptools import setup

setup(
    name="ChapterFetcher",
    version="1.0.0",
    py_modules=["ChapterFetcher"],
    install_requires=[
        'requests>=2.31.0',
        'beautifulsoup4>=4.12.0',
        'selenium>=4.15.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'chapterfetcher=ChapterFetcher:main',
        ],
    },
    author="Your Name",
    author_email="your.email@example.com",
    description="A tool for fetching obfuscated web novel chapters and saving them as text files",
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type="text/markdown",
    keywords="web novel, chapter, scraper, decoder",
    url="https://github.com/yourusername/ChapterFetcher",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
)
