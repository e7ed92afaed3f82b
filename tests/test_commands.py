"""
Tests for the ``flask site-admin`` and ``flask families`` CLI commands.
"""
from extensions import db
from models.users import User


class TestSiteAdminCommands:
    def test_grant_and_revoke(self, app, user):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['site-admin', 'grant', 'admin@example.com'])
        assert 'SUCCESS' in result.output
        db.session.expire_all()
        assert db.session.get(User, user.id).is_site_admin is True

        listing = runner.invoke(args=['site-admin', 'list'])
        assert 'admin@example.com' in listing.output

        result = runner.invoke(args=['site-admin', 'revoke', 'admin@example.com'])
        assert 'revoked' in result.output
        db.session.expire_all()
        assert db.session.get(User, user.id).is_site_admin is False

    def test_grant_unknown_email(self, app):
        result = app.test_cli_runner().invoke(args=['site-admin', 'grant', 'ghost@example.com'])
        assert 'No user found' in result.output


class TestFamiliesCommand:
    def test_lists_counts_and_flags_adminless_families(self, app, family, make_user, add_member):
        from models.family import Family
        pending = make_user('u2', email='u2@example.com')
        add_member(family, pending, is_approved=False)
        orphan = Family(name='Orphans')
        db.session.add(orphan)
        db.session.commit()

        output = app.test_cli_runner().invoke(args=['families', 'list']).output

        smiths = next(line for line in output.splitlines() if 'Smiths' in line)
        assert smiths.split()[-3:] == ['2', '1', '1']
        orphans = next(line for line in output.splitlines() if 'Orphans' in line)
        assert '(no admin)' in orphans
