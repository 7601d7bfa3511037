from setuptools import setup, find_packages

setup(
    name='file-provider',
    version='0.1.0',
    description='Uniform async file storage over the local filesystem and Azure Blob Storage',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    install_requires=[
        'aiofiles>=23.1',
        'azure-core',
        'azure-identity',
        'azure-storage-blob[aio]',
        'pydantic>=2',
        'pydantic-settings',
        'python-dotenv',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    python_requires='>=3.8',
)
