from setuptools import find_packages, setup

setup(
    name='sentredis',
    version='1.0',
    packages=find_packages(),
    description='Sentinel-aware Redis client that follows the master through failovers',
    long_description=open('README.txt').read(),
    install_requires=[
        'Django >= 3.2',
        'redis >= 6.0'
    ],
    classifiers=[
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'Topic :: Software Development :: Libraries',
        'Topic :: Utilities',
        'Environment :: Web Environment',
        'Framework :: Django',
    ],
    zip_safe=False
)
