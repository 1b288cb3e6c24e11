async def setup(bot) -> None:
    from .forum_issues import ForumIssues

    await bot.add_cog(ForumIssues(bot))
