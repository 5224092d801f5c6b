from gevent import monkey  # isort:skip

monkey.patch_all()  # isort:skip

from token_deployer.main import main  # noqa: E402

if __name__ == "__main__":
    main()
