# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved
'''
This example demonstrates how to use the ydfs FUSE mount to read and write files on a Yandex Disk.

Setup:
    # Install the package with its FUSE dependency
    pip install ydfs

    # Install FUSE on your system
    # On Ubuntu/Debian:
    sudo apt-get install fuse

    # On CentOS/RHEL:
    sudo yum install fuse

    # Configure the OAuth token
    export YDFS_TOKEN=your_oauth_token
    # or create ~/.ydfs/credentials.yaml with:
    # default:
    #   token: your_oauth_token

    # Create a mount point
    mkdir -p /mnt/yadisk

Usage:
    # Mount the disk (or one directory of it with --root)
    python -m ydfs.fuse /mnt/yadisk
    python -m ydfs.fuse /mnt/yadisk --root /Photos

    # Run this example against the mount
    python fuse_operations.py /mnt/yadisk

    # Unmount when done
    fusermount -u /mnt/yadisk

Troubleshooting:
    # Enable debug logging and per-operation tracing
    export YDFS_LOG_LEVEL=DEBUG
    python -m ydfs.fuse /mnt/yadisk --trace

    # Check if FUSE is properly installed
    which fusermount

'''
import sys
import os

def main():
    if len(sys.argv) != 2:
        print("Usage: python fuse_operations.py <mountpoint>")
        sys.exit(1)

    mountpoint = sys.argv[1]
    example_dir = os.path.join(mountpoint, "ydfs-example")
    example_file = os.path.join(example_dir, "example.txt")

    # Create a directory and write a file in it
    try:
        os.makedirs(example_dir, exist_ok=True)
        with open(example_file, 'w') as f:
            f.write("Hello FUSE")
        print(f"File created and written: {example_file}")
    except OSError as e:
        print(f"Write operation failed: {e}")

    # Read from the file
    try:
        with open(example_file, 'r') as f:
            content = f.read()
        print(f"Content read from file: {content}")
        print(f"Directory listing: {os.listdir(example_dir)}")
    except OSError as e:
        print(f"Read operation failed: {e}")

    # Delete the file and the directory
    try:
        os.remove(example_file)
        os.rmdir(example_dir)
        print(f"Removed: {example_dir}")
    except OSError as e:
        print(f"Delete operation failed: {e}")

if __name__ == '__main__':
    main()
