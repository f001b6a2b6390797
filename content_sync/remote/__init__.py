from .store import ContentStore, GitHubContentStore, InMemoryContentStore, RemoteFile, WriteStatus
