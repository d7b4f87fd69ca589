from setuptools import setup, find_packages

with open('requirements.txt') as f:
    requirements = [r.strip() for r in f if r.strip()]

setup(
    name='udpstream',
    version='0.1.0',
    description='UDP datagram listener exposing received messages as a push-based stream',
    packages=find_packages(exclude=('tests', 'tests.*')),
    py_modules=['udp_subscriber'],
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7', 'pytest-asyncio>=0.24'],
    },
    python_requires='>=3.11',
)
