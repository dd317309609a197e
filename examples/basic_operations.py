# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
import ydfs
import time

def main():
    # Connect using YDFS_TOKEN or ~/.ydfs/credentials.yaml
    fs = ydfs.new()

    try:
        print(fs.disk_info())

        # Create a working directory tree
        workdir = f"/ydfs-example-{int(time.time())}"
        fs.mkdir_all(f"{workdir}/notes/2024")
        print(f"Created directories: {workdir}/notes/2024")

        # Upload a file
        data = b"Hello, World!"
        fs.write_file(f"{workdir}/notes/2024/hello.txt", data)
        print("Uploaded file: hello.txt")

        # Get file metadata
        info = fs.stat(f"{workdir}/notes/2024/hello.txt")
        print(f"File size: {info.size} bytes")
        print(f"Last modified: {info.mod_time}")

        # Read it back in small batches
        with fs.open(f"{workdir}/notes/2024/hello.txt") as f:
            buf = bytearray(4)
            while not f.eof:
                n = f.readinto(buf)
                print(f"Read {n} bytes: {bytes(buf[:n])!r}")

        # Work inside the directory through a scoped view
        notes = fs.sub(f"{workdir}/notes")
        print("Entries under notes:")
        for entry in notes.read_dir("/2024"):
            print(f"- {entry.path} ({entry.size} bytes)")

        # Remove the whole tree
        fs.remove_all(workdir)
        print(f"Removed {workdir}")

    finally:
        fs.close()

if __name__ == "__main__":
    main()
